from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ManagerTask(str, Enum):
    """Daily forms a market manager files against their session."""

    ALLOCATION = "allocation"
    LAND_SEARCH = "land_search"
    STALL_SEARCH = "stall_search"
    INSPECTION_UPDATE = "inspection_update"
    MONEY_RECOVERY = "money_recovery"
    STALL_FEEDBACK = "stall_feedback"


@dataclass(frozen=True)
class TaskTable:
    table: str
    key: str
    columns: tuple[str, ...]


TASK_TABLES = {
    ManagerTask.ALLOCATION: TaskTable("employee_allocations", "allocation_id", ("employee_name",)),
    ManagerTask.LAND_SEARCH: TaskTable(
        "market_land_search",
        "search_id",
        ("place_name", "address", "contact_name", "contact_phone", "is_finalized", "opening_date"),
    ),
    ManagerTask.STALL_SEARCH: TaskTable(
        "stall_searching_updates",
        "update_id",
        ("farmer_name", "stall_name", "contact_phone", "is_interested", "joining_date"),
    ),
    ManagerTask.INSPECTION_UPDATE: TaskTable("market_inspection_updates", "update_id", ("update_notes",)),
    ManagerTask.MONEY_RECOVERY: TaskTable(
        "assets_money_recovery",
        "recovery_id",
        ("farmer_name", "stall_name", "item_name", "received_amount", "pending_amount"),
    ),
    ManagerTask.STALL_FEEDBACK: TaskTable("bms_stall_feedbacks", "feedback_id", ("customer_name", "feedback_text", "rating")),
}

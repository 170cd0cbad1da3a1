from __future__ import annotations

from typing import Protocol, Sequence


class ChangeEventRepository(Protocol):
    def latest_event_id(self) -> int:
        raise NotImplementedError

    def changed_tables_since(self, *, since: int, tables: Sequence[str]) -> Sequence[str]:
        """Distinct table names with events after `since`, limited to `tables`."""
        raise NotImplementedError

    def delete_older_than(self, *, days: int) -> int:
        raise NotImplementedError

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles. A user may hold several; see ROLE_PRIORITY."""

    EMPLOYEE = "employee"
    ADMIN = "admin"
    MARKET_MANAGER = "market_manager"
    BMS_EXECUTIVE = "bms_executive"
    BDO = "bdo"


# Highest first: the role a multi-role user acts as.
ROLE_PRIORITY = (Role.ADMIN, Role.BDO, Role.BMS_EXECUTIVE, Role.MARKET_MANAGER, Role.EMPLOYEE)


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FINALIZED = "finalized"
    LOCKED = "locked"


class AttendanceStatus(str, Enum):
    """Attendance status stored in the database."""

    PRESENT = "present"
    LATE = "late"
    FULL_DAY = "full_day"
    HALF_DAY = "half_day"
    ABSENT = "absent"
    WEEKLY_OFF = "weekly_off"


class MediaType(str, Enum):
    OUTSIDE_RATES = "outside_rates"
    SELFIE_GPS = "selfie_gps"
    RATE_BOARD = "rate_board"
    MARKET_VIDEO = "market_video"
    CLEANING_VIDEO = "cleaning_video"
    CUSTOMER_FEEDBACK = "customer_feedback"


class RequestStatus(str, Enum):
    """Approval workflow status (leaves, BDO submissions)."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class OfferCategory(str, Enum):
    ANTIC = "antic"
    LEAFY_VEGETABLE = "leafy_vegetable"
    VEGETABLE = "vegetable"
    EXOTIC = "exotic"
    ONION_POTATO = "onion_potato"
    FRUIT = "fruit"
    SEASONAL = "seasonal"


class LocationType(str, Enum):
    SOCIETY = "society"
    RESIDENTIAL_COLONY = "residential_colony"


class TaskType(str, Enum):
    """Columns of the task progress widget."""

    PUNCH = "punch"
    STALL_CONFIRM = "stall_confirm"
    OUTSIDE_RATES = "outside_rates"
    SELFIE_GPS = "selfie_gps"
    RATE_BOARD = "rate_board"
    MARKET_VIDEO = "market_video"
    CLEANING_VIDEO = "cleaning_video"
    COLLECTION = "collection"


class TaskState(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


class VisitLocationType(str, Enum):
    """Kinds of site a location visit can scout."""

    RESIDENTIAL_COMPLEX = "residential_complex"
    OPEN_SPACE = "open_space"


class AssetRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    RETURNED = "returned"


class PaymentMode(str, Enum):
    CASH = "cash"
    ONLINE = "online"
    CARD = "card"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class DocumentsStatus(str, Enum):
    PENDING = "pending"
    UPLOADED = "uploaded"

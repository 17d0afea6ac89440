import enum


class PaymentMethod(enum.Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    CREDIT_CARD = "credit_card"
    UPI = "upi"
    OTHER = "other"


class RecordStatus(enum.Enum):
    """Workflow state of standalone income and expense records."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

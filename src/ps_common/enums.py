"""Global enums. Values are what gets written to the orders table."""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PAID = "PAID"
    READY_TO_PRINT = "READY_TO_PRINT"
    PRINTING = "PRINTING"
    COMPLETED = "COMPLETED"
    DELIVERED = "DELIVERED"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class PaperSize(str, Enum):
    NORMAL_XEROX = "Normal Xerox"
    GLOSSY_PRINT = "Glossy Print"
    MATTE_PRINT = "Matte Print"


class UserRole(str, Enum):
    STUDENT = "student"
    XEROX = "xerox"
    ADMIN = "admin"


class ChangeType(str, Enum):
    """Row change kinds delivered by the change feed."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class HistoryTab(str, Enum):
    ALL = "all"
    PROCESSING = "processing"
    READY = "ready"
    COMPLETED = "completed"
    DELIVERED = "delivered"

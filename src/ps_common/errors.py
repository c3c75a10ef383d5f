"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Identity
  4xxx: Order lifecycle
  6xxx: Storage / change feed
  9xxx: System

Every failure coming back from an external collaborator (database, blob
store, change feed) is converted into one of these at the adapter boundary.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Identity ---

class InvalidTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class ForbiddenError(AppError):
    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(1003, detail, 403)


# --- 4xxx: Order lifecycle ---

class InvalidTransitionError(AppError):
    def __init__(self, detail: str, http_status: int = 409) -> None:
        super().__init__(4001, detail, http_status)


class OrderNotFoundError(InvalidTransitionError):
    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order not found: {order_id}", 404)
        self.code = 4004


class InvalidOrderError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4002, f"Invalid order: {detail}", 422)


class ServerInactiveError(AppError):
    def __init__(self) -> None:
        super().__init__(
            4003, "Print server is currently offline. Please try again later.", 423
        )


# --- 6xxx: Storage / change feed ---

class UploadError(AppError):
    def __init__(self, detail: str, http_status: int = 422) -> None:
        super().__init__(6001, f"Upload failed: {detail}", http_status)


class SubscriptionError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6002, f"Change feed unavailable: {detail}", 503)


# --- 9xxx: System ---

class FetchError(AppError):
    def __init__(self, detail: str = "Could not load data") -> None:
        super().__init__(9001, detail, 503)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)

class TimegridError(Exception):
    """Base class for all engine exceptions."""
    def __init__(self, message: str, code: str = "timegrid_error", details: dict = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

class ResourceNotFoundError(TimegridError):
    """Raised when a referenced record is absent from the snapshot."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            code="not_found",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )

class DataIntegrityError(TimegridError):
    """Raised when a grid the canonical model promises is collision-free is not."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, code="data_integrity", details=details)

class TimetableLockedError(TimegridError):
    """Raised when a change is applied to an approved timetable."""
    def __init__(self, timetable_id: str):
        super().__init__(
            f"Timetable {timetable_id} is approved and cannot be edited",
            code="timetable_locked",
            details={"timetable_id": timetable_id},
        )

class ConfigurationError(TimegridError):
    """Raised when engine configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, code="configuration")

class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when the slot scheduler reaches an invalid state."""
    def __init__(self, message: str, details: dict = None, status_code: int = 400):
        super().__init__(message, status_code=status_code, details=details)

class ScheduleValidationError(SchedulerError):
    """Raised when generation input is rejected before any placement happens."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, details=details, status_code=422)

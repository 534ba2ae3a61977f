"""Custom exceptions for the agency framework."""

from typing import Any, Optional, Tuple


class AgencyError(Exception):
    """Base exception for agency framework."""
    pass


class BindError(AgencyError, ValueError):
    """Exception raised when a message template cannot be bound to its arguments."""

    def __init__(self, message: str, template: Optional[str] = None, args: Tuple[Any, ...] = ()):
        super().__init__(message)
        self.template = template
        self.args_ = args


class ContextCancelledError(AgencyError):
    """Exception raised when an execution context has been cancelled."""

    def __init__(self, message: str = "context cancelled", execution_id: Optional[str] = None):
        super().__init__(message)
        self.execution_id = execution_id


class DeadlineExceededError(ContextCancelledError):
    """Exception raised when an execution context passes its deadline."""

    def __init__(self, message: str = "context deadline exceeded", execution_id: Optional[str] = None):
        super().__init__(message, execution_id=execution_id)


class InvalidStepResultError(AgencyError, TypeError):
    """Exception raised when a step function returns something other than a message."""

    def __init__(self, message: str, pipe_name: Optional[str] = None):
        super().__init__(message)
        self.pipe_name = pipe_name

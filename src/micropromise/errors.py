"""Promise error types and exceptions."""

from typing import Any, Iterable, List


class PromiseError(Exception):
    """Base class for all promise errors."""

    def __init__(self, message: str = "", name: str = "Error"):
        self.message = message
        self.name = name
        super().__init__(f"{name}: {message}" if message else name)


class ThrownValue(PromiseError):
    """Carries an arbitrary rejection reason through a Python ``raise``.

    Handlers raise ``ThrownValue(reason)`` to reject the next promise with
    ``reason`` itself rather than with the exception object.
    """

    def __init__(self, value: Any = None):
        self.value = value
        super().__init__(repr(value), "Uncaught")


class PromiseTypeError(PromiseError):
    """Promise type error."""

    def __init__(self, message: str = ""):
        super().__init__(message, "TypeError")


class ChainingCycleError(PromiseTypeError):
    """A promise was resolved with itself."""

    def __init__(self, message: str = "Chaining cycle detected for promise"):
        super().__init__(message)


class AggregateError(PromiseError):
    """Every promise passed to ``Promise.any`` was rejected."""

    def __init__(
        self,
        errors: Iterable[Any] = (),
        message: str = "All promises were rejected",
    ):
        self.errors: List[Any] = list(errors)
        super().__init__(message, "AggregateError")


class PromiseTimeoutError(PromiseError):
    """Raised when a promise does not settle within its allotted time."""

    def __init__(self, message: str = "Promise timed out"):
        super().__init__(message, "TimeoutError")


class TimeLimitError(PromiseError):
    """Raised when the event loop exceeds its execution time limit."""

    def __init__(self, message: str = "Execution timeout"):
        super().__init__(message, "InternalError")


class TaskLimitError(PromiseError):
    """Raised when the event loop runs more tasks than allowed."""

    def __init__(self, message: str = "Task limit exceeded"):
        super().__init__(message, "InternalError")


class StalledError(PromiseError):
    """Raised when the event loop has no work left but a promise is still pending."""

    def __init__(self, message: str = "Event loop stalled before the promise settled"):
        super().__init__(message, "InternalError")


def reason_of(exc: BaseException) -> Any:
    """Return the rejection reason an exception stands for."""
    if isinstance(exc, ThrownValue):
        return exc.value
    return exc

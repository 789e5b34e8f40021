"""
micropromise - JavaScript-style Promises in Pure Python

A single-threaded implementation of the Promise state machine with a
microtask queue, the Promises/A+ resolution procedure and the standard
combinators, implemented entirely in Python with no external dependencies.
"""

__version__ = "0.1.0"

from .errors import (
    AggregateError,
    ChainingCycleError,
    PromiseError,
    PromiseTimeoutError,
    PromiseTypeError,
    StalledError,
    TaskLimitError,
    ThrownValue,
    TimeLimitError,
)
from .promise import Deferred, Promise, resolve_promise
from .scheduler import EventLoop, get_event_loop, set_event_loop
from .timers import delay, with_timeout
from .values import PromiseState, is_thenable

__all__ = [
    "Promise",
    "Deferred",
    "PromiseState",
    "EventLoop",
    "get_event_loop",
    "set_event_loop",
    "resolve_promise",
    "is_thenable",
    "delay",
    "with_timeout",
    "PromiseError",
    "PromiseTypeError",
    "ChainingCycleError",
    "AggregateError",
    "PromiseTimeoutError",
    "ThrownValue",
    "TimeLimitError",
    "TaskLimitError",
    "StalledError",
]

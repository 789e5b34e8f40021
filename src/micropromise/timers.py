"""Timer-backed helpers composed from the public Promise API."""

from typing import Any, Optional

from .errors import PromiseTimeoutError
from .promise import Promise
from .scheduler import EventLoop, get_event_loop


def delay(ms: float, value: Any = None, loop: Optional[EventLoop] = None) -> Promise:
    """Return a promise fulfilled with value after ms milliseconds."""
    if loop is None:
        loop = get_event_loop()
    return Promise(lambda resolve, reject: loop.set_timeout(resolve, ms, value), loop=loop)


def with_timeout(value: Any, ms: float, loop: Optional[EventLoop] = None) -> Promise:
    """Race value against a timer.

    The result settles like value if it settles within ms milliseconds,
    otherwise it rejects with PromiseTimeoutError. The timer is cleared as
    soon as value settles.
    """
    if loop is None:
        loop = value.loop if isinstance(value, Promise) else get_event_loop()
    source = Promise.resolve(value, loop=loop)

    deadline = Promise.with_resolvers(loop=loop)
    timer_id = loop.set_timeout(
        deadline.reject, ms, PromiseTimeoutError(f"Promise timed out after {ms} ms")
    )

    def cancel(_):
        loop.clear_timeout(timer_id)

    source.then(cancel, cancel)
    return Promise.race([source, deadline.promise], loop=loop)

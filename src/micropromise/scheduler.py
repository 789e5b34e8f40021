"""Event loop for promise callbacks: a FIFO microtask queue plus timers."""

import heapq
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple, TYPE_CHECKING

from .errors import StalledError, TaskLimitError, ThrownValue, TimeLimitError
from .values import PromiseState

if TYPE_CHECKING:
    from .promise import Promise

logger = logging.getLogger(__name__)


@dataclass(order=True)
class Timer:
    """A callback scheduled on the loop's virtual clock."""

    due: float
    timer_id: int
    callback: Callable[..., Any] = field(compare=False)
    args: Tuple[Any, ...] = field(compare=False, default=())
    cancelled: bool = field(compare=False, default=False)


class EventLoop:
    """Single-threaded event loop with configurable limits.

    Microtasks run in FIFO order and always drain completely before the
    next timer fires. Timers use a virtual millisecond clock: firing a
    timer moves ``now`` forward to its due time instead of sleeping.
    """

    def __init__(
        self,
        time_limit: Optional[float] = None,
        task_limit: Optional[int] = None,
    ):
        """Create a new event loop.

        Args:
            time_limit: Maximum wall-clock seconds for one run
            task_limit: Maximum number of tasks executed in one run
        """
        self.time_limit = time_limit
        self.task_limit = task_limit

        self._microtasks: Deque[Callable[[], Any]] = deque()
        self._timers: List[Timer] = []
        self._active_timers: Dict[int, Timer] = {}
        self._next_timer_id = 1
        self._now = 0.0

        self.start_time: Optional[float] = None
        self.task_count = 0

    @property
    def now(self) -> float:
        """Current virtual time in milliseconds."""
        return self._now

    def queue_microtask(self, task: Callable[[], Any]) -> None:
        """Queue a zero-argument callable to run after the current task."""
        self._microtasks.append(task)

    def set_timeout(self, callback: Callable[..., Any], delay: float = 0, *args: Any) -> int:
        """Schedule callback(*args) after delay milliseconds. Returns a timer id."""
        if not delay or not delay > 0:
            delay = 0
        timer_id = self._next_timer_id
        self._next_timer_id += 1

        timer = Timer(self._now + delay, timer_id, callback, args)
        heapq.heappush(self._timers, timer)
        self._active_timers[timer_id] = timer
        logger.debug("timer %d scheduled for t=%s", timer_id, timer.due)
        return timer_id

    def clear_timeout(self, timer_id: int) -> None:
        """Cancel a pending timer. Unknown or fired ids are ignored."""
        timer = self._active_timers.pop(timer_id, None)
        if timer is not None:
            timer.cancelled = True
            logger.debug("timer %d cleared", timer_id)

    def has_pending_work(self) -> bool:
        """Check if any microtask or live timer is queued."""
        return bool(self._microtasks) or bool(self._active_timers)

    def run_microtasks(self) -> None:
        """Drain the microtask queue, including tasks queued while draining."""
        self._begin()
        self._drain_microtasks()

    def run(self) -> None:
        """Run until no microtasks and no timers remain."""
        self._begin()
        self._drain_microtasks()
        while self._fire_next_timer():
            self._drain_microtasks()

    def run_until_complete(self, promise: "Promise") -> Any:
        """Run until promise settles and return its value.

        A rejection is raised: exception reasons as-is, any other reason
        wrapped in ThrownValue.
        """
        self._begin()
        self._drain_microtasks()
        while promise.state is PromiseState.PENDING:
            if not self._fire_next_timer():
                logger.debug("loop stalled with %r still pending", promise)
                raise StalledError()
            self._drain_microtasks()

        if promise.state is PromiseState.FULFILLED:
            return promise.value
        reason = promise.value
        if isinstance(reason, BaseException):
            raise reason
        raise ThrownValue(reason)

    def _begin(self) -> None:
        self.start_time = time.time()
        self.task_count = 0

    def _check_limits(self) -> None:
        """Check task and time limits before running a task."""
        self.task_count += 1

        if self.task_limit is not None and self.task_count > self.task_limit:
            logger.debug("task limit of %d exceeded", self.task_limit)
            raise TaskLimitError()

        # Check time limit every 100 tasks
        if self.time_limit and self.task_count % 100 == 0:
            if time.time() - self.start_time > self.time_limit:
                logger.debug("time limit of %ss exceeded", self.time_limit)
                raise TimeLimitError()

    def _drain_microtasks(self) -> None:
        while self._microtasks:
            self._check_limits()
            task = self._microtasks.popleft()
            task()

    def _fire_next_timer(self) -> bool:
        """Fire the earliest live timer. Returns False when none is left."""
        while self._timers and self._timers[0].cancelled:
            heapq.heappop(self._timers)
        if not self._timers:
            return False

        # A limit breach leaves the timer queued
        self._check_limits()
        timer = heapq.heappop(self._timers)
        del self._active_timers[timer.timer_id]
        self._now = max(self._now, timer.due)
        logger.debug("timer %d fired at t=%s", timer.timer_id, self._now)
        timer.callback(*timer.args)
        return True


_default_loop: Optional[EventLoop] = None


def get_event_loop() -> EventLoop:
    """Return the process-wide default loop, creating it on first use."""
    global _default_loop
    if _default_loop is None:
        _default_loop = EventLoop()
    return _default_loop


def set_event_loop(loop: Optional[EventLoop]) -> None:
    """Replace the process-wide default loop (None resets it)."""
    global _default_loop
    _default_loop = loop

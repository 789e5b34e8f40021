"""Promise implementation: state cells, continuations and combinators."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional

from .errors import AggregateError, ChainingCycleError, ThrownValue, reason_of
from .scheduler import EventLoop, get_event_loop
from .values import (
    PromiseState,
    Resolvable,
    ResolvableKind,
    classify,
    fulfilled_outcome,
    rejected_outcome,
)

logger = logging.getLogger(__name__)

Executor = Callable[[Callable[..., None], Callable[..., None]], Any]
Handler = Callable[[Any], Any]


def _identity(value: Any) -> Any:
    return value


def _thrower(reason: Any) -> Any:
    raise ThrownValue(reason)


def _noop(resolve, reject) -> None:
    pass


@dataclass
class Reaction:
    """A continuation registered on a promise: one handler per outcome."""

    on_fulfilled: Handler
    on_rejected: Handler


class Aggregate:
    """Index-aligned results collected by a combinator."""

    def __init__(self, total: int):
        self.slots: List[Any] = [None] * total
        self.completed = 0
        self.total = total

    def record(self, index: int, value: Any) -> bool:
        """Store a result. Returns True once every slot is filled."""
        self.slots[index] = value
        self.completed += 1
        return self.completed == self.total


class Promise:
    """A deferred value that settles exactly once.

    The executor runs synchronously inside the constructor and receives
    ``resolve`` and ``reject``. Handlers registered with ``then`` always
    run later, as microtasks on the promise's event loop.
    """

    def __init__(self, executor: Executor, loop: Optional[EventLoop] = None):
        self._loop = loop if loop is not None else get_event_loop()
        self._state = PromiseState.PENDING
        self._value: Any = None
        self._reactions: List[Reaction] = []
        # Set by the first call to resolve/reject handed to the executor
        self._already_resolved = False

        try:
            executor(self._resolve, self._reject)
        except Exception as exc:
            self._reject(reason_of(exc))

    @property
    def state(self) -> PromiseState:
        return self._state

    @property
    def value(self) -> Any:
        """The fulfilment value or rejection reason (None while pending)."""
        return self._value

    @property
    def loop(self) -> EventLoop:
        return self._loop

    def is_pending(self) -> bool:
        return self._state is PromiseState.PENDING

    def is_fulfilled(self) -> bool:
        return self._state is PromiseState.FULFILLED

    def is_rejected(self) -> bool:
        return self._state is PromiseState.REJECTED

    # Settlement

    def _resolve(self, value: Any = None) -> None:
        if self._already_resolved:
            return
        self._already_resolved = True
        self._adopt(value)

    def _reject(self, reason: Any = None) -> None:
        if self._already_resolved:
            return
        self._already_resolved = True
        self._reject_with(reason)

    def _adopt(self, value: Any) -> None:
        """Fulfil with value, following nested promises to a plain value."""
        if value is self:
            logger.debug("chaining cycle detected for %r", self)
            self._reject_with(ChainingCycleError())
        elif isinstance(value, Promise):
            value._subscribe(self._adopt, self._reject_with)
        else:
            self._fulfill(value)

    def _fulfill(self, value: Any) -> bool:
        return self._transition(PromiseState.FULFILLED, value)

    def _reject_with(self, reason: Any) -> bool:
        return self._transition(PromiseState.REJECTED, reason)

    def _transition(self, state: PromiseState, value: Any) -> bool:
        """Leave the pending state. Returns False if already settled."""
        if self._state is not PromiseState.PENDING:
            return False
        self._state = state
        self._value = value

        reactions, self._reactions = self._reactions, []
        for reaction in reactions:
            self._schedule(reaction)
        return True

    def _schedule(self, reaction: Reaction) -> None:
        if self._state is PromiseState.FULFILLED:
            handler = reaction.on_fulfilled
        else:
            handler = reaction.on_rejected
        value = self._value
        self._loop.queue_microtask(lambda: handler(value))

    def _subscribe(self, on_fulfilled: Handler, on_rejected: Handler) -> None:
        """Register raw handlers without creating a derived promise."""
        reaction = Reaction(on_fulfilled, on_rejected)
        if self._state is PromiseState.PENDING:
            self._reactions.append(reaction)
        else:
            self._schedule(reaction)

    def _derive(self) -> "Promise":
        return self.__class__(_noop, loop=self._loop)

    # Consumption

    def then(
        self,
        on_fulfilled: Optional[Handler] = None,
        on_rejected: Optional[Handler] = None,
    ) -> "Promise":
        """Register handlers and return a promise for their result.

        A missing on_fulfilled passes the value through; a missing
        on_rejected passes the rejection through.
        """
        if not callable(on_fulfilled):
            on_fulfilled = _identity
        if not callable(on_rejected):
            on_rejected = _thrower
        next_promise = self._derive()

        def run(handler, argument):
            try:
                x = handler(argument)
            except Exception as exc:
                next_promise._reject_with(reason_of(exc))
                return
            resolve_promise(next_promise, x)

        self._subscribe(
            lambda value: run(on_fulfilled, value),
            lambda reason: run(on_rejected, reason),
        )
        return next_promise

    def catch(self, on_rejected: Optional[Handler] = None) -> "Promise":
        return self.then(None, on_rejected)

    def finally_(self, on_finally: Optional[Callable[[], Any]] = None) -> "Promise":
        """Run on_finally on either outcome, keeping the original value or reason.

        If on_finally returns a promise or thenable it is waited for; if it
        raises or its result rejects, that reason replaces the original.
        """
        if not callable(on_finally):
            return self.then(on_finally, on_finally)
        loop = self._loop

        def on_value(value):
            return _settled_by(on_finally(), loop).then(lambda _: value)

        def on_reason(reason):
            return _settled_by(on_finally(), loop).then(lambda _: _thrower(reason))

        return self.then(on_value, on_reason)

    def __repr__(self) -> str:
        if self._state is PromiseState.PENDING:
            return "Promise { <pending> }"
        if self._state is PromiseState.FULFILLED:
            return f"Promise {{ {self._value!r} }}"
        return f"Promise {{ <rejected> {self._value!r} }}"

    # Static constructors and combinators

    @classmethod
    def resolve(cls, value: Any = None, loop: Optional[EventLoop] = None) -> "Promise":
        """Return value if it is already a promise, else a promise fulfilled with it."""
        if isinstance(value, Promise):
            return value
        return cls(lambda resolve, reject: resolve(value), loop=loop)

    @classmethod
    def reject(cls, reason: Any = None, loop: Optional[EventLoop] = None) -> "Promise":
        """Return a promise rejected with reason."""
        return cls(lambda resolve, reject: reject(reason), loop=loop)

    @classmethod
    def with_resolvers(cls, loop: Optional[EventLoop] = None) -> "Deferred":
        """Return a pending promise together with its resolve and reject functions."""
        return Deferred(loop=loop, promise_class=cls)

    @classmethod
    def all(cls, promises: Iterable[Any], loop: Optional[EventLoop] = None) -> "Promise":
        """Fulfil with every value in input order, or reject with the first reason."""
        items = list(promises)

        def executor(resolve, reject):
            aggregate = Aggregate(len(items))
            if not items:
                resolve(aggregate.slots)
                return

            for index, item in enumerate(items):

                def on_value(value, index=index):
                    if aggregate.record(index, value):
                        resolve(aggregate.slots)

                cls.resolve(item, loop=loop).then(on_value, reject)

        return cls(executor, loop=loop)

    @classmethod
    def race(cls, promises: Iterable[Any], loop: Optional[EventLoop] = None) -> "Promise":
        """Settle like whichever input settles first. Empty input never settles."""
        items = list(promises)

        def executor(resolve, reject):
            for item in items:
                cls.resolve(item, loop=loop).then(resolve, reject)

        return cls(executor, loop=loop)

    @classmethod
    def all_settled(cls, promises: Iterable[Any], loop: Optional[EventLoop] = None) -> "Promise":
        """Fulfil with an outcome record per input once all have settled."""
        items = list(promises)

        def executor(resolve, reject):
            aggregate = Aggregate(len(items))
            if not items:
                resolve(aggregate.slots)
                return

            for index, item in enumerate(items):

                def on_value(value, index=index):
                    if aggregate.record(index, fulfilled_outcome(value)):
                        resolve(aggregate.slots)

                def on_reason(reason, index=index):
                    if aggregate.record(index, rejected_outcome(reason)):
                        resolve(aggregate.slots)

                cls.resolve(item, loop=loop).then(on_value, on_reason)

        return cls(executor, loop=loop)

    @classmethod
    def any(cls, promises: Iterable[Any], loop: Optional[EventLoop] = None) -> "Promise":
        """Fulfil with the first value; reject with AggregateError if all reject."""
        items = list(promises)

        def executor(resolve, reject):
            aggregate = Aggregate(len(items))
            if not items:
                reject(AggregateError([]))
                return

            for index, item in enumerate(items):

                def on_reason(reason, index=index):
                    if aggregate.record(index, reason):
                        reject(AggregateError(aggregate.slots))

                cls.resolve(item, loop=loop).then(resolve, on_reason)

        return cls(executor, loop=loop)


class Deferred:
    """A promise together with the functions that settle it.

    Attributes:
        promise (Promise): the promise settled by resolve/reject
        resolve (function)
        reject (function)
    """

    def __init__(self, loop: Optional[EventLoop] = None, promise_class: type = Promise):
        self.promise = promise_class(self._executor, loop=loop)

    def _executor(self, resolve, reject):
        self.resolve = resolve
        self.reject = reject


def _settled_by(x: Any, loop: EventLoop) -> Promise:
    """Return a promise that settles the way the resolution procedure settles x."""
    promise = Promise(_noop, loop=loop)
    resolve_promise(promise, x)
    return promise


def resolve_promise(promise: Promise, x: Any) -> None:
    """Settle promise from a handler's return value x.

    Self-resolution is a chaining cycle. Promises are adopted, thenables
    are called at most once through their ``then``, and anything else
    fulfils promise directly.
    """
    if x is promise:
        logger.debug("chaining cycle detected for %r", promise)
        promise._reject_with(ChainingCycleError())
        return

    try:
        resolvable = classify(x)
    except Exception as exc:
        promise._reject_with(reason_of(exc))
        return

    if resolvable.kind is ResolvableKind.PROMISE:
        resolvable.value._subscribe(
            lambda y: resolve_promise(promise, y),
            promise._reject_with,
        )
    elif resolvable.kind is ResolvableKind.THENABLE:
        _resolve_thenable(promise, resolvable)
    else:
        promise._fulfill(resolvable.value)


def _resolve_thenable(promise: Promise, thenable: Resolvable) -> None:
    called = False

    def on_value(y=None):
        nonlocal called
        if called:
            return
        called = True
        resolve_promise(promise, y)

    def on_reason(r=None):
        nonlocal called
        if called:
            return
        called = True
        promise._reject_with(r)

    try:
        thenable.then(on_value, on_reason)
    except Exception as exc:
        if not called:
            called = True
            promise._reject_with(reason_of(exc))

"""Promise states, outcome records and resolvable value classification."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional


class PromiseState(Enum):
    """The three states of a promise."""

    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"

    def __repr__(self) -> str:
        return f"<{self.value}>"


class ResolvableKind(Enum):
    """How the resolution procedure treats a value."""

    VALUE = "value"
    PROMISE = "promise"
    THENABLE = "thenable"


@dataclass
class Resolvable:
    """A value tagged with its resolution kind.

    ``then`` holds the bound ``then`` method for thenables, read exactly once.
    """

    kind: ResolvableKind
    value: Any
    then: Optional[Callable[..., Any]] = None


def get_then(value: Any) -> Optional[Callable[..., Any]]:
    """Return the callable ``then`` member of a value, or None.

    Errors raised while reading the attribute (other than AttributeError)
    propagate to the caller.
    """
    if value is None:
        return None
    then = getattr(value, "then", None)
    if callable(then):
        return then
    return None


def is_thenable(value: Any) -> bool:
    """Check if a value exposes a callable ``then`` member."""
    return get_then(value) is not None


def classify(value: Any) -> Resolvable:
    """Tag a value for the resolution procedure."""
    from .promise import Promise

    if isinstance(value, Promise):
        return Resolvable(ResolvableKind.PROMISE, value)
    then = get_then(value)
    if then is not None:
        return Resolvable(ResolvableKind.THENABLE, value, then)
    return Resolvable(ResolvableKind.VALUE, value)


def fulfilled_outcome(value: Any) -> Dict[str, Any]:
    """Outcome record for a fulfilled promise (as reported by all_settled)."""
    return {"status": PromiseState.FULFILLED.value, "value": value}


def rejected_outcome(reason: Any) -> Dict[str, Any]:
    """Outcome record for a rejected promise (as reported by all_settled)."""
    return {"status": PromiseState.REJECTED.value, "reason": reason}

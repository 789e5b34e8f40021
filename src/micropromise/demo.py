"""Console demonstration of the promise implementation.

Each section builds a few promises, then runs the event loop until all of
its callbacks and timers have finished.
"""

from typing import Callable, List, Tuple

from .promise import Promise
from .scheduler import EventLoop, get_event_loop, set_event_loop
from .timers import delay


def show(label: str) -> Callable:
    """Return a handler that prints label followed by the value it receives."""

    def handler(value):
        print(f"  {label}: {value}")
        return value

    return handler


def basic_then() -> None:
    Promise(lambda resolve, reject: resolve("success")).then(show("resolved"))


def async_resolve(loop: EventLoop) -> None:
    Promise(lambda resolve, reject: loop.set_timeout(resolve, 100, "async success")).then(
        show("resolved after 100ms")
    )


def chaining() -> None:
    def step(name):
        def handler(value):
            print(f"  {name}: {value}")
            return value + 1

        return handler

    Promise.resolve(1).then(step("first then")).then(step("second then")).then(
        show("third then")
    )


def value_passthrough() -> None:
    Promise.resolve(1).then().then().then(show("passed through"))


def catch_and_recover() -> None:
    def recover(reason):
        print(f"  caught: {reason}")
        return "recovered"

    Promise.reject("error").catch(recover).then(show("after catch"))


def finally_keeps_value() -> None:
    Promise.resolve("done").finally_(lambda: print("  finally ran")).then(
        show("value after finally")
    )


def all_fulfilled() -> None:
    Promise.all([Promise.resolve(1), Promise.resolve(2), Promise.resolve(3)]).then(
        show("all")
    )


def all_rejected() -> None:
    Promise.all([Promise.resolve(1), Promise.reject("error"), Promise.resolve(3)]).catch(
        show("all rejected with")
    )


def race() -> None:
    Promise.race([delay(200, "slow"), delay(100, "fast")]).then(show("race winner"))


def all_settled() -> None:
    def report(results):
        for index, result in enumerate(results):
            outcome = result.get("value", result.get("reason"))
            print(f"  [{index}] {result['status']}: {outcome}")

    Promise.all_settled(
        [Promise.resolve(1), Promise.reject("error"), Promise.resolve(3)]
    ).then(report)


def returning_a_promise() -> None:
    def first(value):
        print(f"  first step: {value}")
        return Promise.resolve(value + 1)

    Promise.resolve(1).then(first).then(show("second step"))


def state_protection() -> None:
    def executor(resolve, reject):
        resolve("first")
        resolve("second")
        reject("error")

    Promise(executor).then(show("settled once with"))


def sections(loop: EventLoop) -> List[Tuple[str, Callable[[], None]]]:
    return [
        ("Basic resolve and then", basic_then),
        ("Asynchronous resolve", lambda: async_resolve(loop)),
        ("Chained then", chaining),
        ("Value passthrough", value_passthrough),
        ("catch", catch_and_recover),
        ("finally", finally_keeps_value),
        ("Promise.all", all_fulfilled),
        ("Promise.all with a rejection", all_rejected),
        ("Promise.race", race),
        ("Promise.all_settled", all_settled),
        ("Returning a promise from then", returning_a_promise),
        ("State protection", state_protection),
    ]


def main() -> None:
    """Run every demonstration in order."""
    loop = EventLoop(time_limit=5.0)
    previous = get_event_loop()
    set_event_loop(loop)
    try:
        for number, (title, section) in enumerate(sections(loop), 1):
            print(f"[{number}] {title}")
            section()
            loop.run()
    finally:
        set_event_loop(previous)


if __name__ == "__main__":
    main()

"""Tests for Promise.all, race, all_settled and any."""

import pytest
from micropromise import AggregateError, Promise, ThrownValue
from micropromise.timers import delay


class TestAll:
    """Test Promise.all()."""

    def test_empty_fulfills_with_empty_list(self):
        p = Promise.all([])
        assert p.is_fulfilled()
        assert p.value == []

    def test_values_in_input_order(self, loop):
        p = Promise.all([Promise.resolve(1), Promise.resolve(2), Promise.resolve(3)])
        assert loop.run_until_complete(p) == [1, 2, 3]

    def test_order_independent_of_settlement_order(self, loop):
        p = Promise.all([delay(30, "slow"), delay(10, "fast"), "plain"])
        assert loop.run_until_complete(p) == ["slow", "fast", "plain"]

    def test_plain_values_are_wrapped(self, loop):
        assert loop.run_until_complete(Promise.all([1, "two", None])) == [1, "two", None]

    def test_accepts_any_iterable(self, loop):
        p = Promise.all(Promise.resolve(n) for n in range(3))
        assert loop.run_until_complete(p) == [0, 1, 2]

    def test_first_rejection_wins(self, loop):
        p = Promise.all(
            [Promise.resolve(1), Promise.resolve(2), Promise.reject("x"), Promise.resolve(3)]
        )
        loop.run()
        assert p.is_rejected()
        assert p.value == "x"

    def test_earliest_rejection_in_time_wins(self, loop):
        p = Promise.all(
            [
                delay(20).then(lambda _: _raise("late")),
                delay(5).then(lambda _: _raise("early")),
            ]
        )
        loop.run()
        assert p.value == "early"

    def test_later_settlements_ignored(self, loop):
        first = Promise.with_resolvers()
        second = Promise.with_resolvers()
        p = Promise.all([first.promise, second.promise])
        first.reject("first")
        loop.run()
        second.reject("second")
        loop.run()
        assert p.value == "first"
        assert second.promise.value == "second"

    def test_waits_for_pending(self, loop):
        deferred = Promise.with_resolvers()
        p = Promise.all([Promise.resolve(1), deferred.promise])
        loop.run()
        assert p.is_pending()
        deferred.resolve(2)
        loop.run()
        assert p.value == [1, 2]


class TestRace:
    """Test Promise.race()."""

    def test_empty_stays_pending(self, loop):
        p = Promise.race([])
        loop.run()
        assert p.is_pending()

    def test_first_registered_settled_input_wins(self, loop):
        p = Promise.race([Promise.resolve(1), Promise.reject("x")])
        assert loop.run_until_complete(p) == 1

    def test_rejection_first_wins(self, loop):
        p = Promise.race([Promise.reject("x"), Promise.resolve(1)])
        loop.run()
        assert p.is_rejected()
        assert p.value == "x"

    def test_fastest_timer_wins(self, loop):
        p = Promise.race([delay(200, "slow"), delay(100, "fast")])
        assert loop.run_until_complete(p) == "fast"

    def test_plain_value_wins_over_pending(self, loop):
        deferred = Promise.with_resolvers()
        p = Promise.race([deferred.promise, "plain"])
        assert loop.run_until_complete(p) == "plain"


class TestAllSettled:
    """Test Promise.all_settled()."""

    def test_empty_fulfills_with_empty_list(self):
        p = Promise.all_settled([])
        assert p.is_fulfilled()
        assert p.value == []

    def test_outcome_records(self, loop):
        p = Promise.all_settled([Promise.resolve(1), Promise.reject("e")])
        assert loop.run_until_complete(p) == [
            {"status": "fulfilled", "value": 1},
            {"status": "rejected", "reason": "e"},
        ]

    def test_index_aligned_regardless_of_settlement_order(self, loop):
        late = Promise.with_resolvers()
        p = Promise.all_settled([late.promise, Promise.reject("early")])
        loop.run()
        assert p.is_pending()
        late.resolve("late")
        assert loop.run_until_complete(p) == [
            {"status": "fulfilled", "value": "late"},
            {"status": "rejected", "reason": "early"},
        ]

    def test_never_rejects(self, loop):
        p = Promise.all_settled([Promise.reject("a"), Promise.reject("b")])
        loop.run()
        assert p.is_fulfilled()
        assert [record["reason"] for record in p.value] == ["a", "b"]


class TestAny:
    """Test Promise.any()."""

    def test_empty_rejects_with_aggregate_error(self):
        p = Promise.any([])
        assert p.is_rejected()
        assert isinstance(p.value, AggregateError)
        assert p.value.errors == []

    def test_first_fulfillment_wins(self, loop):
        p = Promise.any([Promise.reject("a"), Promise.resolve("b"), Promise.resolve("c")])
        assert loop.run_until_complete(p) == "b"

    def test_all_rejected(self, loop):
        p = Promise.any([delay(10).then(lambda _: _raise("slow")), Promise.reject("fast")])
        loop.run()
        assert p.is_rejected()
        assert isinstance(p.value, AggregateError)
        assert p.value.errors == ["slow", "fast"]
        assert p.value.message == "All promises were rejected"

    def test_fulfillment_after_rejections(self, loop):
        p = Promise.any([Promise.reject("a"), delay(50, "eventually")])
        assert loop.run_until_complete(p) == "eventually"

    def test_run_until_complete_raises_aggregate(self, loop):
        with pytest.raises(AggregateError):
            loop.run_until_complete(Promise.any([Promise.reject("only")]))


def _raise(reason):
    raise ThrownValue(reason)

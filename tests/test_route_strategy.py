import pytest

from acid.route_strategy import (
    HashIPRouteStrategy,
    PollingRouteStrategy,
    RandomRouteStrategy,
    Strategy,
    get_local_host,
    query_strategy,
)

ITEMS = [1, 2, 3, 4, 5]


def test_random_selects_members():
    strategy = query_strategy(Strategy.RANDOM)
    picks = [strategy.select(ITEMS) for _ in ITEMS]
    assert len(picks) == len(ITEMS)
    assert all(p in ITEMS for p in picks)


def test_random_is_shared():
    strategy = query_strategy(Strategy.RANDOM)
    assert strategy is query_strategy(Strategy.RANDOM)
    assert strategy.select(["only"]) == "only"


def test_poll_cycles_in_order():
    strategy = query_strategy(Strategy.POLLING)
    picks = [strategy.select(ITEMS) for _ in ITEMS]
    assert picks == [1, 2, 3, 4, 5]
    assert strategy.select(ITEMS) == 1


def test_poll_instances_are_independent():
    first = query_strategy(Strategy.POLLING)
    second = query_strategy(Strategy.POLLING)
    assert first is not second
    first.select(ITEMS)
    assert second.select(ITEMS) == 1


def test_poll_resets_on_shorter_list():
    strategy = PollingRouteStrategy()
    for _ in range(3):
        strategy.select(ITEMS)
    assert strategy.select(["a", "b"]) == "a"
    assert strategy.select(["a", "b"]) == "b"


def test_hash_selects_member_and_is_shared():
    strategy = query_strategy(Strategy.HASH_IP)
    assert strategy is query_strategy(Strategy.HASH_IP)
    assert all(strategy.select(ITEMS) in ITEMS for _ in ITEMS)


def test_hash_is_stable_for_host():
    first = HashIPRouteStrategy("10.0.0.1")
    second = HashIPRouteStrategy("10.0.0.1")
    picks = {first.select(ITEMS) for _ in range(10)}
    assert len(picks) == 1
    assert second.select(ITEMS) in picks


def test_hash_without_host_falls_back_to_random():
    strategy = HashIPRouteStrategy("")
    assert strategy.host == ""
    assert strategy.select(ITEMS) in ITEMS


@pytest.mark.parametrize(
    "strategy",
    [RandomRouteStrategy(), PollingRouteStrategy(), HashIPRouteStrategy("10.0.0.1")],
)
def test_empty_list_raises(strategy):
    with pytest.raises(ValueError):
        strategy.select([])


def test_get_local_host_shape():
    host = get_local_host()
    assert host == "" or len(host.split(".")) == 4
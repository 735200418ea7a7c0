import pytest

from mqconsume.message import MessageQueue
from mqconsume.strategy import (
    ConsistentHash,
    allocate_by_averagely,
    allocate_by_averagely_circle,
    allocate_by_config,
    allocate_by_consistent_hash,
    allocate_by_machine_nearby,
    allocate_by_machine_room,
)

CIDS = [f"192.168.24.{i}@default" for i in range(1, 8)]


def qs(*ids):
    return [MessageQueue(queue_id=i) for i in ids]


@pytest.fixture
def queues():
    return qs(0, 1, 2, 3, 4, 5)


@pytest.fixture
def room_queues():
    names = ["1", "1", "1", "2", "2", "3"]
    return [
        MessageQueue(queue_id=i, broker_name=f"192.168.24.{n}@defaultName")
        for i, n in enumerate(names)
    ]


@pytest.mark.parametrize(
    "strategy", [allocate_by_averagely, allocate_by_averagely_circle, allocate_by_machine_nearby]
)
def test_empty_params_give_none(strategy, queues):
    assert strategy("testGroup", "", queues, [CIDS[0]]) is None
    assert strategy("testGroup", CIDS[0], None, [CIDS[0]]) is None
    assert strategy("testGroup", CIDS[0], queues, None) is None


@pytest.mark.parametrize(
    "current,count,expected",
    [
        (0, 2, (0, 1, 2)),
        (1, 3, (2, 3)),
        (1, 4, (2, 3)),
        (3, 4, (5,)),
        (6, 7, ()),
    ],
)
def test_allocate_by_averagely(queues, current, count, expected):
    result = allocate_by_averagely("testGroup", CIDS[current], queues, CIDS[:count])
    assert result == qs(*expected)


@pytest.mark.parametrize(
    "current,count,expected",
    [
        (0, 2, (0, 2, 4)),
        (1, 3, (1, 4)),
        (1, 4, (1, 5)),
        (3, 4, (3,)),
        (6, 7, ()),
    ],
)
def test_allocate_by_averagely_circle(queues, current, count, expected):
    result = allocate_by_averagely_circle("testGroup", CIDS[current], queues, CIDS[:count])
    assert result == qs(*expected)


def test_unknown_consumer_gives_none(queues):
    assert allocate_by_averagely("testGroup", "10.0.0.9@default", queues, CIDS[:2]) is None


def test_allocate_by_config(queues):
    strategy = allocate_by_config(queues)
    result = strategy("testGroup", CIDS[0], queues, CIDS[:2])
    assert result == queues


def test_machine_room_empty_params(room_queues):
    strategy = allocate_by_machine_room(["192.168.24.1", "192.168.24.2"])
    assert strategy("testGroup", "", room_queues, [CIDS[0]]) is None
    assert strategy("testGroup", CIDS[0], None, [CIDS[0]]) is None
    assert strategy("testGroup", CIDS[0], room_queues, None) is None


@pytest.mark.parametrize(
    "current,count,expected",
    [
        (0, 2, [(0, "1"), (1, "1"), (4, "2")]),
        (1, 3, [(1, "1"), (4, "2")]),
        (1, 4, [(1, "1")]),
        (3, 4, [(3, "2")]),
        (6, 7, []),
    ],
)
def test_allocate_by_machine_room(room_queues, current, count, expected):
    strategy = allocate_by_machine_room(["192.168.24.1", "192.168.24.2"])
    result = strategy("testGroup", CIDS[current], room_queues, CIDS[:count])
    assert result == [
        MessageQueue(queue_id=i, broker_name=f"192.168.24.{n}@defaultName")
        for i, n in expected
    ]


def test_consistent_hash_empty_params(room_queues):
    strategy = allocate_by_consistent_hash(10)
    assert strategy("testGroup", "", room_queues, [CIDS[0]]) is None
    assert strategy("testGroup", CIDS[0], None, [CIDS[0]]) is None
    assert strategy("testGroup", CIDS[0], room_queues, None) is None


@pytest.mark.parametrize("count", [2, 3])
def test_consistent_hash_partitions_queues(room_queues, count):
    strategy = allocate_by_consistent_hash(10)
    cids = CIDS[:count]
    parts = [strategy("testGroup", cid, room_queues, cids) for cid in cids]
    flat = [mq for part in parts for mq in part]
    assert sorted(flat, key=lambda q: q.queue_id) == room_queues
    assert len(flat) == len(set(flat))


def test_consistent_hash_is_deterministic(room_queues):
    strategy = allocate_by_consistent_hash(10)
    first = strategy("testGroup", CIDS[1], room_queues, CIDS[:3])
    second = strategy("testGroup", CIDS[1], room_queues, CIDS[:3])
    assert first == second


def test_consistent_hash_single_consumer_gets_all(room_queues):
    strategy = allocate_by_consistent_hash(10)
    assert strategy("testGroup", CIDS[0], room_queues, CIDS[:1]) == room_queues


def test_ring_get_returns_member():
    ring = ConsistentHash(10)
    for cid in CIDS[:3]:
        ring.add(cid)
    for i in range(20):
        assert ring.get(f"key-{i}") in CIDS[:3]
    assert ring.get("key-1") == ring.get("key-1")


def test_ring_empty_raises():
    with pytest.raises(LookupError):
        ConsistentHash(10).get("anything")
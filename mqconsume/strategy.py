"""Strategies that allocate message queues among the consumers of a group."""

from __future__ import annotations

import bisect
import logging
import zlib
from typing import Callable, Optional, Sequence

from .message import MessageQueue

log = logging.getLogger(__name__)

AllocateStrategy = Callable[
    [str, str, Sequence[MessageQueue], Sequence[str]], Optional[list]
]


def _consumer_index(
    consumer_group: str,
    current_cid: str,
    mq_all: Sequence[MessageQueue] | None,
    cid_all: Sequence[str] | None,
) -> int | None:
    """Return the position of the current consumer, or None if allocation is impossible."""
    if not current_cid or not mq_all or not cid_all:
        return None
    try:
        return list(cid_all).index(current_cid)
    except ValueError:
        log.warning(
            "[BUG] ConsumerId not in cidAll: group=%s consumerId=%s cidAll=%s",
            consumer_group,
            current_cid,
            list(cid_all),
        )
        return None


def allocate_by_averagely(consumer_group, current_cid, mq_all, cid_all):
    """Give each consumer a contiguous, nearly equal slice of the queues."""
    index = _consumer_index(consumer_group, current_cid, mq_all, cid_all)
    if index is None:
        return None
    mq_size = len(mq_all)
    cid_size = len(cid_all)
    mod = mq_size % cid_size
    if mq_size <= cid_size:
        average_size = 1
    elif mod > 0 and index < mod:
        average_size = mq_size // cid_size + 1
    else:
        average_size = mq_size // cid_size
    if mod > 0 and index < mod:
        start_index = index * average_size
    else:
        start_index = index * average_size + mod
    num = min(average_size, mq_size - start_index)
    return [mq_all[(start_index + i) % mq_size] for i in range(num)]


def allocate_by_averagely_circle(consumer_group, current_cid, mq_all, cid_all):
    """Deal the queues out to consumers in turn."""
    index = _consumer_index(consumer_group, current_cid, mq_all, cid_all)
    if index is None:
        return None
    return list(mq_all[index :: len(cid_all)])


def allocate_by_machine_nearby(consumer_group, current_cid, mq_all, cid_all):
    """Allocate by machine proximity; currently the same as the average strategy."""
    return allocate_by_averagely(consumer_group, current_cid, mq_all, cid_all)


def allocate_by_config(queues) -> AllocateStrategy:
    """Return a strategy that always allocates the given queues."""
    fixed = list(queues)

    def strategy(consumer_group, current_cid, mq_all, cid_all):
        log.debug(
            "allocating %d configured queues to %s of group %s",
            len(fixed),
            current_cid,
            consumer_group,
        )
        return list(fixed)

    return strategy


def allocate_by_machine_room(consumer_idcs) -> AllocateStrategy:
    """Return a strategy that allocates the queues of brokers in the given rooms."""
    idcs = list(consumer_idcs)

    def strategy(consumer_group, current_cid, mq_all, cid_all):
        index = _consumer_index(consumer_group, current_cid, mq_all, cid_all)
        if index is None:
            return None
        premq_all = []
        for mq in mq_all:
            parts = mq.broker_name.split("@")
            if len(parts) == 2:
                premq_all.extend(mq for idc in idcs if idc == parts[0])
        mod, rem = divmod(len(premq_all), len(cid_all))
        start_index = mod * index
        result = list(mq_all[start_index : start_index + mod])
        if rem > index:
            result.append(premq_all[index + mod * len(cid_all)])
        return result

    return strategy


class ConsistentHash:
    """A hash ring with a fixed number of virtual nodes per element."""

    def __init__(self, replicas: int = 20) -> None:
        self.replicas = replicas
        self._circle: dict[int, str] = {}
        self._sorted: list[int] = []
        self._members: set[str] = set()

    @staticmethod
    def _hash(key: str) -> int:
        return zlib.crc32(key.encode("utf-8")) & 0xFFFFFFFF

    def add(self, element: str) -> None:
        """Place an element on the ring."""
        for i in range(self.replicas):
            self._circle[self._hash(f"{i}{element}")] = element
        self._members.add(element)
        self._sorted = sorted(self._circle)

    def get(self, name: str) -> str:
        """Return the element closest after the hash of name on the ring."""
        if not self._circle:
            raise LookupError("empty circle")
        pos = bisect.bisect_right(self._sorted, self._hash(name))
        if pos >= len(self._sorted):
            pos = 0
        return self._circle[self._sorted[pos]]


def allocate_by_consistent_hash(virtual_node_cnt) -> AllocateStrategy:
    """Return a strategy that maps queues to consumers on a hash ring."""

    def strategy(consumer_group, current_cid, mq_all, cid_all):
        if _consumer_index(consumer_group, current_cid, mq_all, cid_all) is None:
            return None
        ring = ConsistentHash(virtual_node_cnt)
        for cid in cid_all:
            ring.add(cid)
        result = []
        for mq in mq_all:
            try:
                node = ring.get(str(mq))
            except LookupError as exc:
                log.warning("[BUG] AllocateByConsistentHash err: %s", exc)
                node = ""
            if node == current_cid:
                result.append(mq)
        return result

    return strategy
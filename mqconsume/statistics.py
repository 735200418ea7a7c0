"""Rolling consume and pull statistics kept per topic and consumer group."""

from __future__ import annotations

import calendar
import logging
import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable

log = logging.getLogger(__name__)

_MINUTE_SAMPLES = 7
_HOUR_SAMPLES = 7
_DAY_SAMPLES = 25


@dataclass(frozen=True)
class CallSnapshot:
    """Counter values captured at one sampling instant."""

    timestamp: int
    time: int
    value: int


@dataclass(frozen=True)
class StatsSnapshot:
    """Totals and rates derived from a window of call snapshots."""

    sum: int = 0
    tps: float = 0.0
    avgpt: float = 0.0


@dataclass
class ConsumeStatus:
    """Consume statistics of one topic within a group."""

    pull_rt: float = 0.0
    pull_tps: float = 0.0
    consume_rt: float = 0.0
    consume_ok_tps: float = 0.0
    consume_failed_tps: float = 0.0
    consume_failed_msgs: int = 0


def _divide(numerator: float, denominator: float) -> float:
    """Floating division that yields inf or nan instead of raising on zero."""
    if denominator == 0:
        if numerator == 0:
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def compute_stats_data(snapshots: Iterable[CallSnapshot]) -> StatsSnapshot:
    """Derive the sum, rate per second and average per call over a window."""
    window = list(snapshots)
    if not window:
        return StatsSnapshot()
    first, last = window[0], window[-1]
    total = last.value - first.value
    tps = _divide(total * 1000.0, float(last.timestamp - first.timestamp))
    times_diff = last.time - first.time
    avgpt = total / times_diff if times_diff > 0 else 0.0
    return StatsSnapshot(sum=total, tps=tps, avgpt=avgpt)


def next_minute_time() -> datetime:
    """Return the moment one minute from now."""
    return datetime.now() + timedelta(minutes=1)


def next_hour_time() -> datetime:
    """Return the moment one hour from now."""
    return datetime.now() + timedelta(hours=1)


def next_month_time() -> datetime:
    """Return the same moment one calendar month from now, overflowing short months."""
    now = datetime.now()
    year, month = (now.year + 1, 1) if now.month == 12 else (now.year, now.month + 1)
    days_in_month = calendar.monthrange(year, month)[1]
    base = now.replace(year=year, month=month, day=1)
    if now.day <= days_in_month:
        return base.replace(day=now.day)
    return base + timedelta(days=now.day - 1)


class StatsItem:
    """Counters of one statistic key with minute, hour and day sample windows."""

    def __init__(self, stats_name: str, stats_key: str) -> None:
        self.stats_name = stats_name
        self.stats_key = stats_key
        self.value = 0
        self.times = 0
        self._counter_lock = threading.Lock()
        self._minute: deque[CallSnapshot] = deque(maxlen=_MINUTE_SAMPLES)
        self._hour: deque[CallSnapshot] = deque(maxlen=_HOUR_SAMPLES)
        self._day: deque[CallSnapshot] = deque(maxlen=_DAY_SAMPLES)
        self._minute_lock = threading.Lock()
        self._hour_lock = threading.Lock()
        self._day_lock = threading.Lock()

    def add(self, value: int, times: int) -> None:
        """Increase the accumulated value and call count."""
        with self._counter_lock:
            self.value += value
            self.times += times

    def _snapshot(self) -> CallSnapshot:
        with self._counter_lock:
            return CallSnapshot(
                timestamp=int(time.time()) * 1000, time=self.times, value=self.value
            )

    def sampling_in_seconds(self) -> None:
        """Record a sample into the minute window."""
        snap = self._snapshot()
        with self._minute_lock:
            self._minute.append(snap)

    def sampling_in_minutes(self) -> None:
        """Record a sample into the hour window."""
        snap = self._snapshot()
        with self._hour_lock:
            self._hour.append(snap)

    def sampling_in_hour(self) -> None:
        """Record a sample into the day window."""
        snap = self._snapshot()
        with self._day_lock:
            self._day.append(snap)

    def stats_in_minute(self) -> StatsSnapshot:
        with self._minute_lock:
            return compute_stats_data(self._minute)

    def stats_in_hour(self) -> StatsSnapshot:
        with self._hour_lock:
            return compute_stats_data(self._hour)

    def stats_in_day(self) -> StatsSnapshot:
        with self._day_lock:
            return compute_stats_data(self._day)

    def _log(self, title: str, snap: StatsSnapshot) -> None:
        log.info(
            "%s statsName=%s statsKey=%s SUM=%d TPS=%.2f AVGPT=%s",
            title,
            self.stats_name,
            self.stats_key,
            snap.sum,
            snap.tps,
            snap.avgpt,
        )

    def log_minute(self) -> None:
        self._log("Stats In One Minute.", self.stats_in_minute())

    def log_hour(self) -> None:
        self._log("Stats In One Hour.", self.stats_in_hour())

    def log_day(self) -> None:
        self._log("Stats In One Day.", self.stats_in_day())


class StatsItemSet:
    """A named family of statistic items, sampled and logged in the background."""

    def __init__(self, stats_name: str) -> None:
        self.stats_name = stats_name
        self._items: dict[str, StatsItem] = {}
        self._lock = threading.Lock()
        self._closed = threading.Event()
        self._threads: list[threading.Thread] = []
        self._started = False

    @property
    def is_running(self) -> bool:
        """Whether background sampling threads are alive."""
        return any(t.is_alive() for t in self._threads)

    def _items_snapshot(self) -> list[StatsItem]:
        with self._lock:
            return list(self._items.values())

    def add_value(self, key: str, inc_value: int, inc_times: int) -> None:
        self.get_or_create(key).add(inc_value, inc_times)

    def get_or_create(self, key: str) -> StatsItem:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                item = StatsItem(self.stats_name, key)
                self._items[key] = item
            return item

    def sampling_in_seconds(self) -> None:
        for item in self._items_snapshot():
            item.sampling_in_seconds()

    def sampling_in_minutes(self) -> None:
        for item in self._items_snapshot():
            item.sampling_in_minutes()

    def sampling_in_hour(self) -> None:
        for item in self._items_snapshot():
            item.sampling_in_hour()

    def log_minutes(self) -> None:
        for item in self._items_snapshot():
            item.log_minute()

    def log_hour(self) -> None:
        for item in self._items_snapshot():
            item.log_hour()

    def log_day(self) -> None:
        for item in self._items_snapshot():
            item.log_day()

    def _lookup(self, key: str) -> StatsItem | None:
        with self._lock:
            return self._items.get(key)

    def stats_in_minute(self, key: str) -> StatsSnapshot:
        item = self._lookup(key)
        return item.stats_in_minute() if item else StatsSnapshot()

    def stats_in_hour(self, key: str) -> StatsSnapshot:
        item = self._lookup(key)
        return item.stats_in_hour() if item else StatsSnapshot()

    def stats_in_day(self, key: str) -> StatsSnapshot:
        item = self._lookup(key)
        return item.stats_in_day() if item else StatsSnapshot()

    def _periodic(
        self,
        first_delay: Callable[[], float],
        interval: float,
        action: Callable[[], None],
    ) -> None:
        if self._closed.wait(max(first_delay(), 0.0)):
            return
        while not self._closed.wait(interval):
            try:
                action()
            except Exception:
                log.exception("statistics task of %s failed", self.stats_name)

    def start(self) -> None:
        """Start the background sampling and logging threads once."""
        with self._lock:
            if self._started or self._closed.is_set():
                return
            self._started = True

        def until(moment: Callable[[], datetime]) -> Callable[[], float]:
            return lambda: (moment() - datetime.now()).total_seconds()

        tasks = [
            (lambda: 0.0, 10.0, self.sampling_in_seconds),
            (lambda: 0.0, 600.0, self.sampling_in_minutes),
            (lambda: 0.0, 3600.0, self.sampling_in_hour),
            (until(next_minute_time), 60.0, self.log_minutes),
            (until(next_hour_time), 3600.0, self.log_hour),
            (until(next_month_time), 86400.0, self.log_day),
        ]
        for first_delay, interval, action in tasks:
            thread = threading.Thread(
                target=self._periodic,
                args=(first_delay, interval, action),
                name=f"stats-{self.stats_name}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()

    def close(self) -> None:
        """Stop the background threads and wait for them to finish."""
        self._closed.set()
        for thread in self._threads:
            thread.join()


class StatsManager:
    """Pull and consume statistics of a consumer, keyed by topic and group."""

    def __init__(self) -> None:
        self.consume_ok_tps_set = StatsItemSet("CONSUME_OK_TPS")
        self.consume_rt_set = StatsItemSet("CONSUME_RT")
        self.consume_failed_tps_set = StatsItemSet("CONSUME_FAILED_TPS")
        self.pull_tps_set = StatsItemSet("PULL_TPS")
        self.pull_rt_set = StatsItemSet("PULL_RT")

    @property
    def _sets(self) -> tuple[StatsItemSet, ...]:
        return (
            self.consume_ok_tps_set,
            self.consume_rt_set,
            self.consume_failed_tps_set,
            self.pull_tps_set,
            self.pull_rt_set,
        )

    def __enter__(self) -> "StatsManager":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    def start(self) -> None:
        for stats_set in self._sets:
            stats_set.start()

    def shutdown(self) -> None:
        for stats_set in self._sets:
            stats_set.close()

    @staticmethod
    def _key(group: str, topic: str) -> str:
        return f"{topic}@{group}"

    def increase_pull_rt(self, group: str, topic: str, rt: int) -> None:
        self.pull_rt_set.add_value(self._key(group, topic), rt, 1)

    def increase_pull_tps(self, group: str, topic: str, msgs: int) -> None:
        self.pull_tps_set.add_value(self._key(group, topic), msgs, 1)

    def increase_consume_rt(self, group: str, topic: str, rt: int) -> None:
        self.consume_rt_set.add_value(self._key(group, topic), rt, 1)

    def increase_consume_ok_tps(self, group: str, topic: str, msgs: int) -> None:
        self.consume_ok_tps_set.add_value(self._key(group, topic), msgs, 1)

    def increase_consume_failed_tps(self, group: str, topic: str, msgs: int) -> None:
        self.consume_failed_tps_set.add_value(self._key(group, topic), msgs, 1)

    def pull_rt(self, group: str, topic: str) -> StatsSnapshot:
        return self.pull_rt_set.stats_in_minute(self._key(group, topic))

    def pull_tps(self, group: str, topic: str) -> StatsSnapshot:
        return self.pull_tps_set.stats_in_minute(self._key(group, topic))

    def consume_rt(self, group: str, topic: str) -> StatsSnapshot:
        key = self._key(group, topic)
        snap = self.pull_rt_set.stats_in_minute(key)
        if snap.sum == 0:
            return self.consume_rt_set.stats_in_hour(key)
        return snap

    def consume_ok_tps(self, group: str, topic: str) -> StatsSnapshot:
        return self.consume_ok_tps_set.stats_in_minute(self._key(group, topic))

    def consume_failed_tps(self, group: str, topic: str) -> StatsSnapshot:
        return self.consume_failed_tps_set.stats_in_minute(self._key(group, topic))

    def consume_status(self, group: str, topic: str) -> ConsumeStatus:
        return ConsumeStatus(
            pull_rt=self.pull_rt(group, topic).avgpt,
            pull_tps=self.pull_tps(group, topic).tps,
            consume_rt=self.consume_rt(group, topic).avgpt,
            consume_ok_tps=self.consume_ok_tps(group, topic).tps,
            consume_failed_tps=self.consume_failed_tps(group, topic).tps,
            consume_failed_msgs=self.consume_failed_tps_set.stats_in_hour(
                self._key(group, topic)
            ).sum,
        )
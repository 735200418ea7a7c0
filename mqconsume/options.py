"""Consume results, message models and the options of a push consumer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Callable, List, Optional

from .strategy import AllocateStrategy, allocate_by_averagely

_MAX_INT32 = 2**31 - 1
_DEFAULT_RETRY_RECONSUME_TIMES = 16
_MIN_SUSPEND_MILLIS = 10
_MAX_SUSPEND_MILLIS = 30000


class ConsumeResult(IntEnum):
    """What a consume callback reports about a batch of messages."""

    CONSUME_SUCCESS = 0
    CONSUME_RETRY_LATER = 1
    COMMIT = 2
    ROLLBACK = 3
    SUSPEND_CURRENT_QUEUE_A_MOMENT = 4


class MessageModel(Enum):
    """How messages of a topic are shared among the consumers of a group."""

    BROADCASTING = "BroadCasting"
    CLUSTERING = "Clustering"

    def __str__(self) -> str:
        return self.value


class ConsumeFromWhere(Enum):
    """Where a new consumer group starts reading a queue."""

    LAST_OFFSET = "CONSUME_FROM_LAST_OFFSET"
    FIRST_OFFSET = "CONSUME_FROM_FIRST_OFFSET"
    TIMESTAMP = "CONSUME_FROM_TIMESTAMP"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class _Range:
    attribute: str
    label: str
    low: int
    high: int
    default: int


# Options that fall back to a default when left at zero and must otherwise
# lie within an inclusive range.
_RANGES = (
    _Range("consume_concurrently_max_span", "ConsumeConcurrentlyMaxSpan", 1, 65535, 1000),
    _Range("pull_threshold_for_queue", "PullThresholdForQueue", 1, 65535, 1024),
    _Range("pull_threshold_for_topic", "PullThresholdForTopic", 1, 6553500, 102400),
    _Range("pull_threshold_size_for_queue", "PullThresholdSizeForQueue", 1, 1024, 512),
    _Range("pull_threshold_size_for_topic", "PullThresholdSizeForTopic", 1, 102400, 51200),
)

_BATCH_RANGES = (
    _Range("consume_message_batch_max_size", "ConsumeMessageBatchMaxSize", 1, 1024, 1),
    _Range("pull_batch_size", "PullBatchSize", 1, 1024, 32),
    _Range("consume_goroutine_nums", "ConsumeGoroutineNums", 1, 100000, 20),
)

_MAX_PULL_INTERVAL = 65.535


@dataclass
class PushConsumerOptions:
    """Settings of a push consumer. Durations are in seconds."""

    group_name: str = ""
    namespace: str = ""
    instance_name: str = "DEFAULT"
    consumer_model: MessageModel = MessageModel.CLUSTERING
    consume_orderly: bool = False
    from_where: ConsumeFromWhere = ConsumeFromWhere.LAST_OFFSET
    strategy: AllocateStrategy = allocate_by_averagely
    unit_mode: bool = False

    consume_concurrently_max_span: int = 0
    pull_threshold_for_queue: int = 0
    pull_threshold_for_topic: int = 0
    pull_threshold_size_for_queue: int = 0
    pull_threshold_size_for_topic: int = 0
    pull_interval: float = 0.0
    consume_message_batch_max_size: int = 0
    pull_batch_size: int = 0
    consume_goroutine_nums: int = 0
    post_subscription_when_pull: bool = False

    max_reconsume_times: int = -1
    suspend_current_queue_time: float = 1.0
    consume_timeout: float = 15 * 60.0
    max_time_consume_continuously: float = 60.0
    rebalance_lock_interval: float = 20.0
    auto_commit: bool = True

    interceptors: List[Callable[..., Any]] = field(default_factory=list)
    limiter: Optional[Callable[[str], None]] = None
    trace_dispatcher: Any = None

    def validate(self) -> None:
        """Fill unset limits with their defaults and reject values out of range."""
        for rng in _RANGES:
            self._check_range(rng)
        if self.pull_interval < 0 or self.pull_interval > _MAX_PULL_INTERVAL:
            raise ValueError("option.PullInterval out of range [0, 65535]")
        for rng in _BATCH_RANGES:
            self._check_range(rng)

    def _check_range(self, rng: _Range) -> None:
        value = getattr(self, rng.attribute)
        if rng.low <= value <= rng.high:
            return
        if value == 0:
            setattr(self, rng.attribute, rng.default)
            return
        raise ValueError(
            f"option.{rng.label} out of range [{rng.low}, {rng.high}]"
        )

    def max_reconsume_times_for_retry(self) -> int:
        """Reconsume limit sent with messages returned to the broker."""
        if self.max_reconsume_times == -1:
            return _DEFAULT_RETRY_RECONSUME_TIMES
        return self.max_reconsume_times

    def orderly_max_reconsume_times(self) -> int:
        """Reconsume limit applied locally by orderly consumption."""
        if self.max_reconsume_times == -1:
            return _MAX_INT32
        return self.max_reconsume_times


def clamp_suspend_millis(suspend_time_millis: int, default_millis: int) -> int:
    """Resolve -1 to the default and keep the suspension within [10, 30000] ms."""
    if suspend_time_millis == -1:
        suspend_time_millis = default_millis
    return max(_MIN_SUSPEND_MILLIS, min(_MAX_SUSPEND_MILLIS, suspend_time_millis))
"""Callbacks, contexts and results used while handing messages to user code."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Optional, Sequence

from .message import MessageExt, MessageQueue
from .options import ConsumeResult

PROP_CTX_TYPE = "ConsumeContextType"

SUCCESS_RETURN = "SUCCESS"
TIMEOUT_RETURN = "TIMEOUT"
EXCEPTION_RETURN = "EXCEPTION"
FAILED_RETURN = "FAILED"

CONSUMER_PUSH = "ConsumerPush"

# Results reported for a message consumed on a broker's direct request.
CR_SUCCESS = "CR_SUCCESS"
CR_LATER = "CR_LATER"
CR_THROW_EXCEPTION = "CR_THROW_EXCEPTION"

ConsumeFunc = Callable[..., ConsumeResult]
Invoker = Callable[[Any, Any, Any], None]
Interceptor = Callable[[Any, Any, Any, Invoker], None]


@dataclass(frozen=True)
class PushConsumerCallback:
    """A user callback registered for one topic."""

    topic: str
    func: ConsumeFunc

    @property
    def unique_id(self) -> str:
        """Identity of the callback within a consumer: its topic."""
        return self.topic

    def __call__(self, context: Any, *messages: MessageExt) -> ConsumeResult:
        return self.func(context, *messages)


@dataclass
class ConsumeResultHolder:
    """Carries the consume result back out through interceptors."""

    consume_result: ConsumeResult = ConsumeResult.CONSUME_SUCCESS


@dataclass
class ConsumeConcurrentlyContext:
    """Per-batch settings a concurrent callback may adjust."""

    mq: MessageQueue = field(default_factory=MessageQueue)
    delay_level_when_next_consume: int = 0


@dataclass
class ConsumeOrderlyContext:
    """Per-batch settings an orderly callback may adjust."""

    mq: MessageQueue = field(default_factory=MessageQueue)
    auto_commit: bool = True
    suspend_current_queue_time_millis: int = -1


@dataclass
class ConsumeMessageContext:
    """Everything known about a batch while it is being consumed."""

    consumer_group: str = ""
    mq: Optional[MessageQueue] = None
    msgs: List[MessageExt] = field(default_factory=list)
    properties: dict[str, str] = field(default_factory=dict)
    success: bool = False
    method: str = CONSUMER_PUSH
    concurrently: Optional[ConsumeConcurrentlyContext] = None
    orderly: Optional[ConsumeOrderlyContext] = None

    def mark(self, return_type: str) -> None:
        """Record how the consumption of the batch ended."""
        self.properties[PROP_CTX_TYPE] = return_type

    @property
    def return_type(self) -> str:
        """How the consumption ended, or an empty string if not yet known."""
        return self.properties.get(PROP_CTX_TYPE, "")


@dataclass
class ConsumeDirectlyResult:
    """Outcome of consuming a single message at a broker's request."""

    order: bool = False
    auto_commit: bool = True
    consume_result: str = ""
    remark: str = ""
    spent_time_millis: int = 0


def split_batches(
    messages: Sequence[MessageExt], batch_size: int
) -> Iterator[List[MessageExt]]:
    """Yield consecutive batches of at most batch_size messages."""
    if batch_size < 1:
        raise ValueError("batch size must be at least 1")
    for start in range(0, len(messages), batch_size):
        yield list(messages[start : start + batch_size])


def chain_interceptors(*args: Interceptor) -> Optional[Interceptor]:
    """Combine interceptors into one; the first given runs outermost.

    Returns None when no interceptor is given.
    """
    interceptors = list(args)
    if not interceptors:
        return None
    if len(interceptors) == 1:
        return interceptors[0]

    def chained(context: Any, request: Any, reply: Any, invoker: Invoker) -> None:
        def link(position: int) -> Invoker:
            if position == len(interceptors):
                return invoker

            def call(ctx: Any, req: Any, rep: Any) -> None:
                interceptors[position](ctx, req, rep, link(position + 1))

            return call

        interceptors[0](context, request, reply, link(1))

    return chained
"""Message queues, received messages and the filter hook context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List

PROPERTY_RETRY_TOPIC = "RETRY_TOPIC"
PROPERTY_CONSUME_START_TIME = "CONSUME_START_TIME"
PROPERTY_RECONSUME_TIME = "RECONSUME_TIME"


@dataclass(frozen=True)
class MessageQueue:
    """A single queue of a topic on a broker."""

    topic: str = ""
    broker_name: str = ""
    queue_id: int = 0

    def __str__(self) -> str:
        return (
            f"MessageQueue [topic={self.topic}, brokerName={self.broker_name}, "
            f"queueId={self.queue_id}]"
        )


@dataclass
class MessageExt:
    """A message as received from a broker."""

    topic: str = ""
    body: bytes = b""
    properties: dict[str, str] = field(default_factory=dict)
    msg_id: str = ""
    queue: MessageQueue = field(default_factory=MessageQueue)
    queue_offset: int = 0
    commit_log_offset: int = 0
    reconsume_times: int = 0
    store_host: str = ""
    born_timestamp: int = 0

    def get_property(self, name: str) -> str:
        """Return the property value, or an empty string when absent."""
        return self.properties.get(name, "")

    def with_property(self, name: str, value: str) -> None:
        """Set a property on the message."""
        self.properties[name] = value


@dataclass
class FilterMessageContext:
    """What a filter hook receives about the messages it may drop."""

    consumer_group: str = ""
    messages: List[MessageExt] = field(default_factory=list)
    mq: MessageQueue | None = None
    arg: Any = None
    unit_mode: bool = False


FilterMessageHook = Callable[[FilterMessageContext], List[MessageExt]]
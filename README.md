# mqconsume

Building blocks for the consuming side of a message queue client. The package has no dependencies outside the standard library.

| Module | What it holds |
| --- | --- |
| `mqconsume.message` | `MessageQueue`, `MessageExt` and `FilterMessageContext` |
| `mqconsume.strategy` | Strategies that split a topic's queues among the consumers of a group, and `ConsistentHash` |
| `mqconsume.statistics` | `StatsManager`, which keeps sampled pull and consume counters for each topic and group |
| `mqconsume.options` | `PushConsumerOptions` with validation and defaults, plus `ConsumeResult`, `MessageModel`, `ConsumeFromWhere` and `clamp_suspend_millis` |
| `mqconsume.consume` | Consume callbacks, contexts and results, plus `chain_interceptors` and `split_batches` |

## Install

```
pip install .
pip install .[test]   # with pytest
```

## Messages

`MessageQueue` is a frozen dataclass with the fields `topic`, `broker_name` and `queue_id`.

`MessageExt` carries the following:

- `topic`, `body` and `properties`
- `msg_id` and `queue`
- the offsets `queue_offset` and `commit_log_offset`
- `reconsume_times`, `store_host` and `born_timestamp`

`get_property(name)` returns `""` when the property is absent. `with_property(name, value)` sets a property.

## Allocating queues

Every strategy is called with `(consumer_group, current_cid, mq_all, cid_all)`. It returns the queues that belong to the current consumer.

The strategies return `None` in two cases:

- the consumer id is empty, or either list is empty;
- the consumer is not in `cid_all`. A warning is logged.

```python
from mqconsume.message import MessageQueue
from mqconsume.strategy import allocate_by_averagely, allocate_by_averagely_circle

queues = [MessageQueue(topic="TopicTest", broker_name="broker-a", queue_id=i) for i in range(6)]
cids = ["10.0.0.1@default", "10.0.0.2@default"]

allocate_by_averagely("testGroup", "10.0.0.1@default", queues, cids)         # queues 0, 1, 2
allocate_by_averagely_circle("testGroup", "10.0.0.1@default", queues, cids)  # queues 0, 2, 4
```

The strategies are:

- `allocate_by_averagely` gives each consumer a contiguous slice of the queues. The slices differ in size by at most one.
- `allocate_by_averagely_circle` deals the queues out to the consumers in turn.
- `allocate_by_machine_nearby` currently behaves the same as `allocate_by_averagely`.
- `allocate_by_config(queues)` returns a strategy that always hands out the given queues.
- `allocate_by_machine_room(consumer_idcs)` returns a strategy for brokers named `room@name`. It allocates the queues of brokers whose room is in `consumer_idcs`.
- `allocate_by_consistent_hash(virtual_node_cnt)` returns a strategy that places the consumers on a `ConsistentHash` ring. Each consumer gets `virtual_node_cnt` virtual nodes. Each queue goes to the consumer that follows the hash of the queue's string form on the ring.

## Options

`PushConsumerOptions.validate()` works on the limits in two ways:

- A limit left at `0` is set to its default.
- A limit that is set but out of range raises `ValueError`.

`pull_interval` is in seconds and must lie within `[0, 65.535]`.

```python
from mqconsume.options import PushConsumerOptions

options = PushConsumerOptions(group_name="testGroup")
options.validate()
options.pull_batch_size          # 32
options.pull_threshold_for_queue # 1024

PushConsumerOptions(pull_batch_size=2000).validate()  # ValueError
```

When `max_reconsume_times` is `-1`, the two reconsume limits behave differently:

- `max_reconsume_times_for_retry()` gives 16.
- `orderly_max_reconsume_times()` gives 2**31 - 1.

`clamp_suspend_millis(value, default)` first replaces `-1` with the default. It then keeps the result within `[10, 30000]`.

## Consume plumbing

- `PushConsumerCallback(topic, func)` wraps a user callback. Calling it as `callback(context, *messages)` returns a `ConsumeResult`.
- `ConsumeMessageContext` holds the group, queue and messages of a batch. It also holds the batch's optional concurrent or orderly context. `mark(return_type)` records how consumption ended, and `return_type` reads it back.
- `ConsumeResultHolder` carries the result out through interceptors.
- `ConsumeDirectlyResult` is the outcome of consuming one message on request.
- `split_batches(messages, batch_size)` yields consecutive lists of at most `batch_size` messages. A batch size below 1 raises `ValueError`.
- `chain_interceptors(*interceptors)` combines interceptors of the form `(context, request, reply, invoker)` into one. The first one given runs outermost. With no interceptors it returns `None`.

```python
from mqconsume.consume import chain_interceptors

calls = []

def outer(ctx, req, reply, invoke):
    calls.append("outer")
    invoke(ctx, req, reply)

def inner(ctx, req, reply, invoke):
    calls.append("inner")
    invoke(ctx, req, reply)

chain_interceptors(outer, inner)(None, [], None, lambda ctx, req, reply: calls.append("call"))
# calls == ["outer", "inner", "call"]
```

## Statistics

`StatsManager` keeps five families of statistics, each keyed by `topic@group`:

- pull RT
- pull TPS
- consume RT
- consume OK TPS
- consume failed TPS

Figures are computed from sample windows:

| Window | Samples kept |
| --- | --- |
| minute | last 7 |
| hour | last 7 |
| day | last 25 |

You can sample by hand:

```python
from mqconsume.statistics import StatsManager

stats = StatsManager()
stats.increase_pull_tps("testGroup", "TopicTest", 32)
stats.pull_tps_set.sampling_in_seconds()
stats.increase_pull_tps("testGroup", "TopicTest", 32)
stats.pull_tps_set.sampling_in_seconds()
stats.pull_tps("testGroup", "TopicTest").sum   # 32
stats.consume_status("testGroup", "TopicTest") # a ConsumeStatus
```

Calling `start()`, or entering the manager as a context manager, starts background threads. The threads sample every 10 seconds, every 10 minutes and every hour, and log the figures periodically. `shutdown()` stops them.

## What the package does not do

There is no network client in this package. It does not do any of the following:

- connect to name servers or brokers;
- pull messages;
- send messages back for retry;
- persist offsets;
- provide a running consumer object that drives subscriptions.

It supplies the allocation, option, statistics and context pieces that such a consumer is built from.

## Tests

```
pytest
```
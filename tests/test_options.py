import pytest

from mqconsume.options import (
    ConsumeFromWhere,
    ConsumeResult,
    MessageModel,
    PushConsumerOptions,
    clamp_suspend_millis,
)
from mqconsume.strategy import allocate_by_averagely


def test_validate_fills_defaults_for_zero_values():
    opts = PushConsumerOptions()
    opts.validate()
    assert opts.consume_concurrently_max_span == 1000
    assert opts.pull_threshold_for_queue == 1024
    assert opts.pull_threshold_for_topic == 102400
    assert opts.pull_threshold_size_for_queue == 512
    assert opts.pull_threshold_size_for_topic == 51200
    assert opts.consume_message_batch_max_size == 1
    assert opts.pull_batch_size == 32
    assert opts.consume_goroutine_nums == 20


def test_validate_is_idempotent():
    opts = PushConsumerOptions()
    opts.validate()
    first = (opts.pull_batch_size, opts.pull_threshold_for_topic)
    opts.validate()
    assert (opts.pull_batch_size, opts.pull_threshold_for_topic) == first


def test_validate_keeps_values_in_range():
    opts = PushConsumerOptions(pull_batch_size=1024, consume_concurrently_max_span=65535)
    opts.validate()
    assert opts.pull_batch_size == 1024
    assert opts.consume_concurrently_max_span == 65535


@pytest.mark.parametrize(
    "name,value,message",
    [
        ("consume_concurrently_max_span", 65536, "option.ConsumeConcurrentlyMaxSpan out of range [1, 65535]"),
        ("pull_threshold_for_queue", -5, "option.PullThresholdForQueue out of range [1, 65535]"),
        ("pull_threshold_for_topic", -1, "option.PullThresholdForTopic out of range [1, 6553500]"),
        ("pull_threshold_size_for_queue", 1025, "option.PullThresholdSizeForQueue out of range [1, 1024]"),
        ("pull_threshold_size_for_topic", 102401, "option.PullThresholdSizeForTopic out of range [1, 102400]"),
        ("consume_message_batch_max_size", 1025, "option.ConsumeMessageBatchMaxSize out of range [1, 1024]"),
        ("pull_batch_size", 1025, "option.PullBatchSize out of range [1, 1024]"),
        ("consume_goroutine_nums", 100001, "option.ConsumeGoroutineNums out of range [1, 100000]"),
    ],
)
def test_validate_rejects_out_of_range(name, value, message):
    opts = PushConsumerOptions(**{name: value})
    with pytest.raises(ValueError) as info:
        opts.validate()
    assert str(info.value) == message


@pytest.mark.parametrize("interval", [-0.001, 65.536])
def test_validate_rejects_pull_interval(interval):
    opts = PushConsumerOptions(pull_interval=interval)
    with pytest.raises(ValueError, match="PullInterval"):
        opts.validate()


def test_validate_accepts_pull_interval_bounds():
    for interval in (0.0, 65.535):
        opts = PushConsumerOptions(pull_interval=interval)
        opts.validate()
        assert opts.pull_interval == interval


def test_reconsume_times_unlimited():
    opts = PushConsumerOptions(max_reconsume_times=-1)
    assert opts.max_reconsume_times_for_retry() == 16
    assert opts.orderly_max_reconsume_times() == 2**31 - 1


def test_reconsume_times_explicit():
    opts = PushConsumerOptions(max_reconsume_times=5)
    assert opts.max_reconsume_times_for_retry() == 5
    assert opts.orderly_max_reconsume_times() == 5


def test_clamp_suspend_millis_bounds():
    assert clamp_suspend_millis(1, 1000) == 10
    assert clamp_suspend_millis(100000, 1000) == 30000
    assert clamp_suspend_millis(3000, 1000) == 3000


def test_clamp_suspend_millis_uses_default():
    assert clamp_suspend_millis(-1, 1000) == 1000
    assert clamp_suspend_millis(-1, 5) == 10


def test_enum_names():
    opts = PushConsumerOptions(consumer_model=MessageModel.BROADCASTING)
    opts.validate()
    assert opts.consumer_model is MessageModel.BROADCASTING
    assert opts.consumer_model != MessageModel.CLUSTERING
    assert str(ConsumeFromWhere.LAST_OFFSET) == "CONSUME_FROM_LAST_OFFSET"
    assert str(ConsumeFromWhere.FIRST_OFFSET) == "CONSUME_FROM_FIRST_OFFSET"
    assert str(ConsumeFromWhere.TIMESTAMP) == "CONSUME_FROM_TIMESTAMP"
    assert ConsumeResult.CONSUME_SUCCESS < ConsumeResult.CONSUME_RETRY_LATER


def test_default_options():
    opts = PushConsumerOptions()
    assert opts.consumer_model is MessageModel.CLUSTERING
    assert opts.strategy is allocate_by_averagely
    assert opts.auto_commit is True
    assert opts.interceptors == []
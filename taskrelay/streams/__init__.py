"""Durable request/result relay backed by Redis Streams."""

from taskrelay.streams.cleanup import CleanupCoordinator
from taskrelay.streams.consumer import ConsumerState, ResultConsumer
from taskrelay.streams.producer import RequestProducer, ledger_key
from taskrelay.streams.relay import ReplyDestination, ResultRelay
from taskrelay.streams.store import StreamStore
from taskrelay.streams.types import RequestRecord, ResultRecord

__all__ = [
    "CleanupCoordinator",
    "ConsumerState",
    "ReplyDestination",
    "RequestProducer",
    "RequestRecord",
    "ResultConsumer",
    "ResultRecord",
    "ResultRelay",
    "StreamStore",
    "ledger_key",
]

"""Unit tests for stream record serialization."""

from __future__ import annotations

import json

import pytest

from taskrelay.streams.types import RequestRecord, ResultRecord

pytestmark = pytest.mark.unit


def test_request_record_serializes_to_flat_string_fields() -> None:
    record = RequestRecord(
        request_id="1-0",
        event="messageCreate",
        instruction="log $12 lunch",
        sender="alice",
        group_members=["alice", "bob"],
        ledger_id="discord:c1",
        channel_id="c1",
        message_id="m1",
    )

    fields = record.to_stream_dict()

    assert all(isinstance(v, str) for v in fields.values())
    assert json.loads(fields["groupMembers"]) == ["alice", "bob"]
    assert fields["requestId"] == "1-0"


def test_result_record_decodes_bytes_entry() -> None:
    record = ResultRecord.from_stream_entry(
        b"7-0",
        {b"result": b"ok", b"channelId": b"c1", b"messageId": b"m1", b"requestId": b"r1"},
    )

    assert record == ResultRecord(id="7-0", result="ok", channel_id="c1", message_id="m1", request_id="r1")
    assert record.is_actionable


def test_result_record_missing_fields_is_not_actionable() -> None:
    record = ResultRecord.from_stream_entry("7-0", {"result": "ok", "channelId": "c1"})

    assert record.message_id == ""
    assert record.request_id == ""
    assert not record.is_actionable

"""Typed records carried on the request and result streams."""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field

from taskrelay.utils import decode


class RequestRecord(BaseModel):
    """A task description awaiting processing by an external worker."""

    model_config = ConfigDict(frozen=True)

    request_id: str
    event: str
    instruction: str
    sender: str
    group_members: list[str] = Field(default_factory=list)
    ledger_id: str
    channel_id: str
    message_id: str

    def to_stream_dict(self) -> dict[str, str]:
        """Serialize to a flat string dict for Redis XADD."""
        return {
            "requestId": self.request_id,
            "event": self.event,
            "instruction": self.instruction,
            "sender": self.sender,
            "groupMembers": json.dumps(self.group_members),
            "ledgerId": self.ledger_id,
            "channelId": self.channel_id,
            "messageId": self.message_id,
        }


class ResultRecord(BaseModel):
    """A worker's completed output, correlated back to a request by id."""

    model_config = ConfigDict(frozen=True)

    id: str
    result: str = ""
    channel_id: str = ""
    message_id: str = ""
    request_id: str = ""

    @property
    def is_actionable(self) -> bool:
        """True when every correlation field needed for delivery is present."""
        return bool(self.channel_id and self.message_id and self.request_id)

    @classmethod
    def from_stream_entry(cls, entry_id: bytes | str, data: dict[bytes, bytes] | dict[str, str]) -> "ResultRecord":
        """Deserialize from a Redis stream entry; missing fields decode as empty."""
        d = {decode(k): decode(v) for k, v in data.items()}
        return cls(
            id=decode(entry_id),
            result=d.get("result", ""),
            channel_id=d.get("channelId", ""),
            message_id=d.get("messageId", ""),
            request_id=d.get("requestId", ""),
        )

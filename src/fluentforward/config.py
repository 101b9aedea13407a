""" Client configuration. A :class:`Config` is supplied once, when the
    client is constructed, and is never modified afterward.
"""

from __future__ import annotations

import datetime
from typing import Literal, Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator


def _seconds(value):
    if isinstance(value, datetime.timedelta):
        return value.total_seconds()
    return value


class Config(BaseModel):
    """ Immutable client settings. Durations are in seconds; a
        :class:`datetime.timedelta` is also accepted.

        :ivar timeout: Bound on each connect, write, and ack read.
        :ivar retry_count: How many times a failed send is retried after
            the first attempt; a send makes at most ``retry_count + 1``
            attempts.
        :ivar retry_wait: Delay before the first retry.
        :ivar max_retry_wait: Upper bound on the delay between attempts
            when exponential backoff is in use.
        :ivar backoff: 'fixed' waits *retry_wait* between every attempt;
            'exponential' grows the wait by a factor of 1.5 per attempt.
        :ivar max_connection_lifetime: Reconnect when the connection is at
            least this old. The check happens when an event is sent, so an
            idle connection stays open past its lifetime until the next
            send. None or 0 disables the limit.
        :ivar request_ack: Whether sends request and verify an ack.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=False,
    )

    timeout: float = Field(default=3.0, gt=0)
    retry_count: int = Field(default=10, ge=0)
    retry_wait: float = Field(default=0.5, ge=0)
    max_retry_wait: float = Field(default=60.0, ge=0)
    backoff: Literal["fixed", "exponential"] = "fixed"
    max_connection_lifetime: Optional[float] = Field(default=None, ge=0)
    request_ack: bool = True

    @field_validator("timeout", "retry_wait", "max_retry_wait", "max_connection_lifetime", mode="before")
    @classmethod
    def _accept_timedelta(cls, value):
        return _seconds(value)

    @field_validator("max_connection_lifetime", mode="after")
    @classmethod
    def _zero_is_unlimited(cls, value):
        if value == 0:
            return None
        return value


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

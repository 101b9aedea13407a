"""Acknowledgement handling.

The collector answers an acknowledgement-requesting send with a msgpack map,
``{"ack": chunk}``. The response carries no length prefix, so the verifier
keeps reading until the buffered bytes form one complete msgpack value.
"""

from __future__ import annotations

import asyncio

from loguru import logger

from ..transport.base import Transport, TransportError, TransportIOError, TransportTimeout
from . import wire


# An ack for a base64 uuid is 30-odd bytes; anything this large is not an ack.
ACK_LIMIT = 1024


class AckError(Exception):
    """Base class for acknowledgement failures."""


class AckMismatch(AckError):
    """The collector acknowledged a chunk other than the one outstanding."""

    def __init__(self, expected: str, received: str):
        super().__init__(f"request chunk and response ack did not match: expected {expected!r}, received {received!r}")
        self.expected = expected
        self.received = received


class AckTimeout(AckError, TransportTimeout):
    """No complete ack arrived before the deadline."""


class AckIOError(AckError, TransportIOError):
    """The connection failed while waiting for an ack."""


async def read_ack(transport: Transport, timeout: float) -> str:
    """Read one ack response from *transport* and return its chunk id."""

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    buffer = b""

    while True:
        remaining = deadline - loop.time()
        if remaining <= 0:
            raise AckTimeout(f"{transport}: no ack in {timeout:.2f} sec")

        try:
            buffer += await transport.read(ACK_LIMIT - len(buffer), remaining)
        except TransportTimeout as exc:
            raise AckTimeout(f"{transport}: no ack in {timeout:.2f} sec") from exc
        except TransportError as exc:
            raise AckIOError(f"{transport}: {exc}") from exc

        try:
            response = wire.unpack(buffer)
        except wire.Truncated:
            # Partial read; keep going until the limit.
            if len(buffer) >= ACK_LIMIT:
                raise wire.DecodeError(f"{transport}: no valid ack within {ACK_LIMIT} bytes") from None
            continue

        return wire.ack_value(response)


async def verify(transport: Transport, expected: str, timeout: float) -> None:
    """Read the ack for the chunk *expected* and confirm it matches."""

    received = await read_ack(transport, timeout)

    if received != expected:
        logger.warning("Ack and chunk did not match. ack: {}, chunk: {}", received, expected)
        raise AckMismatch(expected, received)

    logger.debug("Chunk {} acknowledged", expected)

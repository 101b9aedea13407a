"""Transport interface.

This is the (small) contract that transport implementations follow: a
byte stream that can be connected, written to and read from, with every
operation bounded by a timeout. It lives outside :mod:`fluentforward.protocol`
so the protocol remains transport-agnostic.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Optional, Tuple


# Transport agnostic exceptions

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportTimeout(TransportError):
    """An operation did not complete before its deadline."""


class TransportConnectionError(TransportError):
    """The transport could not establish a connection."""


class TransportIOError(TransportError):
    """A read or write failed on an established connection."""


class Transport(ABC):
    """Byte-stream connection over asyncio streams.

    Subclasses only decide how the stream is opened; once connected, every
    variant presents the same write/read interface.
    """

    def __init__(self) -> None:
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    @abstractmethod
    async def _open(self) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        """Open the underlying stream."""

    @property
    def is_open(self) -> bool:
        """Whether the transport is currently connected."""
        return self._writer is not None and not self._writer.is_closing()

    async def connect(self, timeout: float) -> None:
        """Establish the underlying connection."""

        try:
            self._reader, self._writer = await asyncio.wait_for(self._open(), timeout)
        except asyncio.TimeoutError as exc:
            raise TransportTimeout(f"{self}: no connection in {timeout:.2f} sec") from exc
        except OSError as exc:
            raise TransportConnectionError(f"{self}: {exc}") from exc

    def _stream(self) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        if self._reader is None or self._writer is None:
            raise TransportIOError(f"{self}: not connected")
        return self._reader, self._writer

    async def write_all(self, data: bytes, timeout: float) -> None:
        """Write every byte of *data*, waiting for the buffer to drain."""

        _reader, writer = self._stream()

        try:
            writer.write(data)
            await asyncio.wait_for(writer.drain(), timeout)
        except asyncio.TimeoutError as exc:
            raise TransportTimeout(f"{self}: write not drained in {timeout:.2f} sec") from exc
        except OSError as exc:
            raise TransportIOError(f"{self}: write failed: {exc}") from exc

    async def read_exact(self, n: int, timeout: float) -> bytes:
        """Read exactly *n* bytes."""

        reader, _writer = self._stream()

        try:
            return await asyncio.wait_for(reader.readexactly(n), timeout)
        except asyncio.TimeoutError as exc:
            raise TransportTimeout(f"{self}: no data in {timeout:.2f} sec") from exc
        except asyncio.IncompleteReadError as exc:
            raise TransportIOError(f"{self}: connection closed after {len(exc.partial)} of {n} bytes") from exc
        except OSError as exc:
            raise TransportIOError(f"{self}: read failed: {exc}") from exc

    async def read(self, limit: int, timeout: float) -> bytes:
        """Read whatever is available, at least one byte and at most *limit*."""

        reader, _writer = self._stream()

        try:
            data = await asyncio.wait_for(reader.read(limit), timeout)
        except asyncio.TimeoutError as exc:
            raise TransportTimeout(f"{self}: no data in {timeout:.2f} sec") from exc
        except OSError as exc:
            raise TransportIOError(f"{self}: read failed: {exc}") from exc

        if not data:
            raise TransportIOError(f"{self}: connection closed")
        return data

    def close(self) -> None:
        """Tear down the connection without waiting for a graceful shutdown."""

        writer = self._writer
        self._reader = None
        self._writer = None

        if writer is not None:
            writer.close()

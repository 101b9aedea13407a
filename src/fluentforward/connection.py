""" Ownership of the single connection a client sends over. The
    :class:`ConnectionManager` decides when the connection must be replaced,
    either because it has outlived its configured lifetime or because an
    operation on it failed, and lends it to one sender at a time.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import time
from typing import AsyncIterator, Callable, Optional

from loguru import logger

from .transport.base import Transport, TransportError


class ConnectionState(enum.Enum):
    ABSENT = "absent"
    CONNECTING = "connecting"
    LIVE = "live"
    EXPIRED = "expired"
    BROKEN = "broken"


class Connection:
    """ A connected :class:`Transport` and the time it was established,
        according to the manager's clock.
    """

    __slots__ = ("transport", "established_at")

    def __init__(self, transport: Transport, established_at: float):
        self.transport = transport
        self.established_at = established_at

    def age(self, now: float) -> float:
        return now - self.established_at


class ConnectionManager:
    """ Hold at most one live :class:`Connection`.

        *factory* returns a new, unconnected :class:`Transport` each time
        it is called; the manager connects it with the configured *timeout*.
        If *max_lifetime* is set, a connection whose age is at least that
        many seconds is discarded the next time it is requested. *clock*
        is the monotonic time source used for that comparison.
    """

    def __init__(
        self,
        factory: Callable[[], Transport],
        timeout: float,
        max_lifetime: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.factory = factory
        self.timeout = timeout
        self.max_lifetime = max_lifetime or None
        self.clock = clock

        self.state = ConnectionState.ABSENT
        self.connection: Optional[Connection] = None
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"ConnectionManager({self.state.value})"

    @contextlib.asynccontextmanager
    async def exclusive(self) -> AsyncIterator["ConnectionManager"]:
        """ Grant exclusive use of the connection for one send. Waiting
            callers are admitted in the order they arrived.
        """

        async with self._lock:
            yield self

    def _expired(self) -> bool:
        if self.max_lifetime is None or self.connection is None:
            return False
        return self.connection.age(self.clock()) >= self.max_lifetime

    def _discard(self, state: ConnectionState) -> None:
        connection = self.connection
        self.connection = None
        self.state = state

        if connection is not None:
            connection.transport.close()

    async def ensure_connected(self) -> Transport:
        """ Return the live transport, connecting first if there is none or
            if the current one has expired.
        """

        if self.state is ConnectionState.LIVE and self._expired():
            logger.debug("Connection {} reached its lifetime of {} sec, reconnecting",
                         self.connection.transport, self.max_lifetime)
            self._discard(ConnectionState.EXPIRED)

        if self.state is ConnectionState.LIVE:
            return self.connection.transport

        transport = self.factory()
        self.state = ConnectionState.CONNECTING

        try:
            await transport.connect(self.timeout)
        except TransportError as exc:
            logger.warning("Failed to connect to {}: {}", transport, exc)
            transport.close()
            self.state = ConnectionState.BROKEN
            raise
        except asyncio.CancelledError:
            transport.close()
            self.state = ConnectionState.BROKEN
            raise

        self.connection = Connection(transport, self.clock())
        self.state = ConnectionState.LIVE
        logger.debug("Connected to {}", transport)
        return transport

    def mark_broken(self, reason: object = None) -> None:
        """ Discard the current transport after a failed operation; the next
            :func:`ensure_connected` call reconnects.
        """

        if self.connection is not None:
            logger.warning("Dropping connection {}: {}", self.connection.transport, reason)

        self._discard(ConnectionState.BROKEN)

    def close(self) -> None:
        self._discard(ConnectionState.ABSENT)

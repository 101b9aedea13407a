"""TCP transport."""

from __future__ import annotations

import asyncio
from typing import Tuple

from ..protocol.fields import DEFAULT_PORT
from .base import Transport


class TcpTransport(Transport):
    """Connect to a collector listening on *host*:*port*."""

    def __init__(self, host: str, port: int = DEFAULT_PORT):
        super().__init__()
        self.host = host
        self.port = int(port)

    def __repr__(self) -> str:
        return f"TcpTransport({self.host}:{self.port})"

    async def _open(self) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        return await asyncio.open_connection(self.host, self.port)

"""Unix domain socket transport."""

from __future__ import annotations

import asyncio
import os
from typing import Tuple, Union

from .base import Transport


class UnixTransport(Transport):
    """Connect to a collector listening on the socket at *path*."""

    def __init__(self, path: Union[str, os.PathLike]):
        super().__init__()
        self.path = os.fspath(path)

    def __repr__(self) -> str:
        return f"UnixTransport({self.path})"

    async def _open(self) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        return await asyncio.open_unix_connection(self.path)

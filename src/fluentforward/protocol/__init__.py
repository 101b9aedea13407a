from . import fields
from . import message
from . import wire
from . import chunk
from . import ack

from .message import EventTime, EventRecord, Message, PackedForward, Entry
from .wire import EncodeError, DecodeError
from .ack import AckError, AckMismatch, AckTimeout, AckIOError


"""
Forward Protocol Layer
======================

This package defines the Fluentd Forward Protocol as spoken by the client:
message structures, their msgpack encoding, chunk identifiers, and the
acknowledgement check. Apart from the ack verifier, which reads from a
:class:`fluentforward.transport.Transport`, nothing here performs I/O.

---------------------------------------------------------------------

Layer Architecture Overview
---------------------------

Client (client.py)
    emit(), emit_with_time(), emit_entries(), send()
    Serializes callers onto one connection

    │
    ▼
Retry Orchestrator (retry.py)
    Bounded attempts, backoff, fresh chunk id per attempt

    │
    ▼
Connection Manager (connection.py)
    ABSENT -> CONNECTING -> LIVE -> EXPIRED | BROKEN
    Lifetime expiry, reconnect after failure

    │
    ▼
Wire Codec (wire.py) and Ack Verifier (ack.py)
    Message <-> msgpack bytes
    {"ack": chunk} correlation

    │
    ▼
Transport (transport/)
    Moves bytes
    - TCP
    - Unix domain socket

---------------------------------------------------------------------

Design Principles
-----------------

1. Transport Agnostic
   Encoding is identical regardless of the socket family.

2. One Send In Flight
   The ack response has no correlation field beyond the chunk id, so a
   connection never carries two outstanding chunks.

3. Layer Isolation
   Dependencies only flow downward:
       Client -> Retry -> Connection -> Transport
   Never upward.

---------------------------------------------------------------------
"""


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

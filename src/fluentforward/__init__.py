""" Python client for the Fluentd Forward Protocol. Log events are encoded
    as msgpack and delivered to a Fluentd-compatible collector over a
    persistent TCP or Unix domain socket connection, optionally waiting for
    the collector to acknowledge each chunk.
"""

# Submodules used by multiple other components.

from . import protocol
from . import transport
from . import config
from . import connection
from . import retry

# Primary public-facing interfaces.

from .config import Config
from .protocol import EventTime, EventRecord, Message, PackedForward
from .protocol import EncodeError, DecodeError
from .protocol import AckError, AckMismatch, AckTimeout, AckIOError
from .transport import TransportError, TransportTimeout, TransportConnectionError, TransportIOError
from .retry import SendError
from .client import Client, NopClient

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

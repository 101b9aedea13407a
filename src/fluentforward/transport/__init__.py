"""Transport layer implementations."""

from .base import (
    Transport,
    TransportError,
    TransportTimeout,
    TransportConnectionError,
    TransportIOError,
)
from ..protocol.fields import DEFAULT_PORT
from .tcp import TcpTransport
from .unix import UnixTransport


def parse_address(address):
    """ Return a (host, port) tuple for *address*, which may already be a
        tuple or a 'host:port' string; the port defaults to the Fluentd
        forward port when omitted.
    """

    if isinstance(address, (tuple, list)):
        host, port = address
        return host, int(port)

    address = str(address)

    # Bracketed IPv6 literals, [::1] or [::1]:24224
    if address.startswith('['):
        host, bracket, rest = address[1:].partition(']')
        if bracket == '' or host == '':
            raise ValueError('invalid address: %r' % (address,))
        if rest == '':
            return host, DEFAULT_PORT
        if not rest.startswith(':'):
            raise ValueError('invalid address: %r' % (address,))
        return host, int(rest[1:])

    # A bare IPv6 literal has no room for a port.
    if address.count(':') != 1:
        return address, DEFAULT_PORT

    host, _separator, port = address.partition(':')
    if host == '':
        raise ValueError('invalid address: %r' % (address,))

    return host, int(port)

import asyncio
import pytest

import fluentforward
from fluentforward.protocol import wire


class FakeClock:
    """ Monotonic clock stand-in; tests advance it by hand.
    """

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds



class FakeNetwork:
    """ Transport factory for in-memory tests. Every transport it hands out
        shares this object's counters, so a test can observe connects,
        writes, and ack reads across reconnects.

        *connect_failures* and *write_failures* are the number of initial
        connects or writes that fail; pass None for 'every one'. *ack* is
        how the fake collector answers: 'echo' returns the chunk it was
        sent, 'mismatch' returns some other chunk, 'silent' never answers,
        'malformed' answers with an ack that is not a string, and 'hang'
        blocks until the read is cancelled.
    """

    def __init__(self, connect_failures=0, write_failures=0, ack='echo'):
        self.connect_failures = connect_failures
        self.write_failures = write_failures
        self.ack = ack

        self.connects = 0
        self.ack_reads = 0
        self.events = list()
        self.messages = list()
        self.transports = list()

    def __call__(self):
        transport = FakeTransport(self)
        self.transports.append(transport)
        return transport

    def _fail(self, name):
        remaining = getattr(self, name)
        if remaining is None:
            return True
        if remaining > 0:
            setattr(self, name, remaining - 1)
            return True
        return False



class FakeTransport:

    def __init__(self, network):
        self.network = network
        self.is_open = False
        self.pending = None

    def __repr__(self):
        return 'FakeTransport(%d)' % (self.network.transports.index(self),)

    async def connect(self, timeout):
        await asyncio.sleep(0)
        self.network.connects += 1

        if self.network._fail('connect_failures'):
            raise fluentforward.TransportConnectionError('connection refused')

        self.is_open = True

    async def write_all(self, data, timeout):
        await asyncio.sleep(0)

        message = wire.decode(data)
        self.network.events.append(('write', message.chunk))
        self.network.messages.append(message)

        if self.network._fail('write_failures'):
            raise fluentforward.TransportIOError('broken pipe')

        self.pending = message.chunk

    async def read(self, limit, timeout):
        await asyncio.sleep(0)

        self.network.ack_reads += 1
        self.network.events.append(('read', self.pending))

        ack = self.network.ack
        if ack == 'hang':
            await asyncio.sleep(3600)
        if ack == 'silent':
            raise fluentforward.TransportTimeout('no data')
        if ack == 'mismatch':
            return wire.encode_ack('c29tZXRoaW5nIGVsc2U=')
        if ack == 'malformed':
            return b'\x81\xa3ack\x05'
        return wire.encode_ack(self.pending)

    async def read_exact(self, n, timeout):
        raise NotImplementedError

    def close(self):
        self.is_open = False



class MockCollector:
    """ A minimal Fluentd stand-in on a real socket. Each decoded message
        is recorded; when *reply* is True, messages carrying a chunk are
        acknowledged.
    """

    def __init__(self, reply=True):
        self.reply = reply
        self.messages = list()
        self.connections = 0
        self.server = None
        self.port = None
        self._writers = list()

    async def start(self, host='127.0.0.1'):
        self.server = await asyncio.start_server(self._handle, host, 0)
        self.port = self.server.sockets[0].getsockname()[1]
        return (host, self.port)

    async def start_unix(self, path):
        self.server = await asyncio.start_unix_server(self._handle, path)
        return path

    async def stop(self):
        for writer in self._writers:
            writer.close()
        self.server.close()
        await self.server.wait_closed()

    async def _handle(self, reader, writer):
        self.connections += 1
        self._writers.append(writer)
        buffer = b''

        try:
            while True:
                data = await reader.read(65536)
                if not data:
                    break

                buffer += data
                try:
                    message = wire.decode(buffer)
                except wire.DecodeError:
                    continue

                buffer = b''
                self.messages.append(message)

                if self.reply and message.chunk is not None:
                    writer.write(wire.encode_ack(message.chunk))
                    await writer.drain()
        except ConnectionError:
            pass
        finally:
            writer.close()



@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def network():
    return FakeNetwork


@pytest.fixture
def collector():
    return MockCollector


@pytest.fixture
def fast_config():
    """ A configuration that does not wait between attempts.
    """

    return fluentforward.Config(timeout=0.5, retry_count=2, retry_wait=0)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

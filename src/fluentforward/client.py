""" The public entry point. A :class:`Client` owns one connection to a
    Fluentd collector and serializes every caller onto it: concurrent
    :func:`Client.emit` calls queue up and are delivered one at a time.

    Example::

        client = await Client.new_tcp(('127.0.0.1', 24224), Config())
        await client.emit('app.log', {'msg': 'hello'})
        await client.close()
"""

import asyncio
import os

from loguru import logger

from . import transport
from .config import Config
from .connection import ConnectionManager
from .protocol.fields import SIZE
from .protocol.message import EventRecord, EventTime, PackedForward
from .protocol.wire import EncodeError
from .retry import Sender, SendError


# Events waiting for background delivery by Client.send().
QUEUE_SIZE = 1024

_stop = object()


class Client:
    """ Deliver log events to a single collector. The *manager* holds the
        connection; *config* sets the timeout, retry, and ack behavior.
        Most callers should use :func:`new_tcp` or :func:`new_unix` rather
        than instantiating this class directly.
    """

    def __init__(self, manager, config=None, wait=None):

        if config is None:
            config = Config()

        self.config = config
        self.manager = manager
        self.sender = Sender(manager, config, wait)
        self.closed = False

        self._queue = None
        self._worker = None


    @classmethod
    async def new_tcp(cls, address, config=None):
        """ Connect to the collector at *address*, either a (host, port)
            tuple or a 'host:port' string. The connection is established
            before returning; a connect failure is raised to the caller.
        """

        host, port = transport.parse_address(address)
        factory = lambda: transport.TcpTransport(host, port)
        return await cls._connected(factory, config)


    @classmethod
    async def new_unix(cls, path, config=None):
        """ Connect to the collector listening on the Unix domain socket
            at *path*.
        """

        path = os.fspath(path)
        factory = lambda: transport.UnixTransport(path)
        return await cls._connected(factory, config)


    @classmethod
    async def _connected(cls, factory, config):

        if config is None:
            config = Config()

        manager = ConnectionManager(factory, config.timeout, config.max_connection_lifetime)
        await manager.ensure_connected()
        return cls(manager, config)


    async def __aenter__(self):
        return self


    async def __aexit__(self, exc_type, exc_value, traceback):
        await self.close()


    def _check_open(self):
        if self.closed:
            raise SendError('client is closed')


    async def _deliver(self, message):

        self._check_open()

        async with self.manager.exclusive():
            await self.sender.send(message)


    async def emit(self, tag, fields):
        """ Send one event stamped with the current wall-clock time. Returns
            once the event is written, and acknowledged if the configuration
            requests acks; raises :class:`SendError` if every attempt failed.
        """

        record = EventRecord(tag, fields, EventTime.now())
        await self._deliver(record.to_message())


    async def emit_with_time(self, tag, time, fields):
        """ Send one event with an explicit *time*: an :class:`EventTime`,
            a UNIX timestamp, or a :class:`datetime.datetime`.
        """

        record = EventRecord(tag, fields, time)
        await self._deliver(record.to_message())


    async def emit_entries(self, tag, entries):
        """ Send a batch of (time, record) *entries* as one forward message.
            Batching itself is up to the caller; the batch is delivered or
            fails as a whole.
        """

        message = PackedForward(tag, entries)
        message = message.with_option(**{SIZE: len(message)})
        await self._deliver(message)


    def send(self, tag, fields):
        """ Queue one event for background delivery and return immediately.
            Delivery failures are logged and the event is dropped. Raises
            :class:`SendError` if the client is closed or the queue is full.
            Must be called with a running event loop.
        """

        self._check_open()

        if self._queue is None:
            self._queue = asyncio.Queue(QUEUE_SIZE)
            self._worker = asyncio.get_running_loop().create_task(self._run())

        message = EventRecord(tag, fields, EventTime.now()).to_message()

        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            raise SendError('send queue is full (%d events)' % (QUEUE_SIZE,)) from None


    async def _run(self):
        """ Background task draining the :func:`send` queue.
        """

        while True:
            message = await self._queue.get()

            if message is _stop:
                break

            try:
                async with self.manager.exclusive():
                    await self.sender.send(message)
            except EncodeError as exc:
                logger.warning('Failed to serialize a message: {}', exc)
            except SendError as exc:
                logger.warning('Dropping event for {}: {}', message.tag, exc)
            except Exception:
                logger.exception('Unexpected failure sending event for {}', message.tag)


    async def close(self):
        """ Deliver anything still queued by :func:`send`, then close the
            connection. Further sends raise :class:`SendError`.
        """

        if self.closed:
            return

        self.closed = True

        if self._worker is not None:
            await self._queue.put(_stop)
            await self._worker

        async with self.manager.exclusive():
            self.manager.close()


# end of class Client



class NopClient:
    """ A stand-in with the :class:`Client` interface that discards every
        event; useful where logging to a collector is disabled.
    """

    async def __aenter__(self):
        return self


    async def __aexit__(self, exc_type, exc_value, traceback):
        await self.close()


    async def emit(self, tag, fields):
        pass


    async def emit_with_time(self, tag, time, fields):
        pass


    async def emit_entries(self, tag, entries):
        pass


    def send(self, tag, fields):
        pass


    async def close(self):
        pass


# end of class NopClient


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

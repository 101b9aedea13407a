import asyncio
import fluentforward
import pytest
import tenacity
import time
import types

from fluentforward import retry
from fluentforward.connection import ConnectionManager, ConnectionState


def sender_for(fake, config, clock=time.monotonic):
    manager = ConnectionManager(fake, config.timeout, config.max_connection_lifetime, clock)
    return retry.Sender(manager, config)


def message():
    return fluentforward.Message('app.log', fluentforward.EventTime(1700000000), {'msg': 'hello'})


def test_success(network, fast_config):

    fake = network()
    sender = sender_for(fake, fast_config)
    asyncio.run(sender.send(message()))

    assert fake.connects == 1
    assert len(fake.messages) == 1
    assert fake.ack_reads == 1
    assert fake.messages[0].chunk is not None
    assert fake.messages[0].record == {'msg': 'hello'}


def test_retry_budget(network):
    """ With retry_count = N and a collector that is never reachable, there
        are exactly N+1 connect attempts before giving up.
    """

    for retry_count in (0, 1, 3):
        config = fluentforward.Config(retry_count=retry_count, retry_wait=0)
        fake = network(connect_failures=None)
        sender = sender_for(fake, config)

        with pytest.raises(fluentforward.SendError) as caught:
            asyncio.run(sender.send(message()))

        assert fake.connects == retry_count + 1
        assert caught.value.attempts == retry_count + 1
        assert isinstance(caught.value.cause, fluentforward.TransportConnectionError)
        assert caught.value.__cause__ is caught.value.cause
        assert sender.manager.state is ConnectionState.BROKEN


def test_success_after_failures(network):

    config = fluentforward.Config(retry_count=5, retry_wait=0)
    fake = network(connect_failures=2)
    sender = sender_for(fake, config)

    asyncio.run(sender.send(message()))

    assert fake.connects == 3
    assert len(fake.messages) == 1
    assert sender.manager.state is ConnectionState.LIVE


def test_success_on_last_attempt(network):

    config = fluentforward.Config(retry_count=2, retry_wait=0)
    fake = network(connect_failures=2)
    sender = sender_for(fake, config)

    asyncio.run(sender.send(message()))
    assert fake.connects == 3


def test_write_failure_reconnects(network, fast_config):

    fake = network(write_failures=1)
    sender = sender_for(fake, fast_config)

    asyncio.run(sender.send(message()))

    assert fake.connects == 2
    assert len(fake.transports) == 2
    assert fake.transports[0].is_open is False
    assert fake.transports[1].is_open is True

    # Every attempt carries its own chunk id.
    first, second = fake.messages
    assert first.chunk != second.chunk


def test_ack_mismatch(network, fast_config):

    fake = network(ack='mismatch')
    sender = sender_for(fake, fast_config)

    with pytest.raises(fluentforward.SendError) as caught:
        asyncio.run(sender.send(message()))

    assert isinstance(caught.value.cause, fluentforward.AckMismatch)
    assert len(fake.messages) == fast_config.retry_count + 1
    assert fake.connects == fast_config.retry_count + 1


def test_malformed_ack(network, fast_config):

    fake = network(ack='malformed')
    sender = sender_for(fake, fast_config)

    with pytest.raises(fluentforward.SendError) as caught:
        asyncio.run(sender.send(message()))

    assert isinstance(caught.value.cause, fluentforward.DecodeError)


def test_ack_timeout(network, fast_config):

    fake = network(ack='silent')
    sender = sender_for(fake, fast_config)

    with pytest.raises(fluentforward.SendError) as caught:
        asyncio.run(sender.send(message()))

    assert isinstance(caught.value.cause, fluentforward.AckTimeout)
    assert isinstance(caught.value.cause, fluentforward.TransportTimeout)


def test_no_ack(network):

    config = fluentforward.Config(request_ack=False, retry_wait=0)
    fake = network()
    sender = sender_for(fake, config)

    asyncio.run(sender.send(message()))

    assert fake.ack_reads == 0
    assert fake.messages[0].option is None

    asyncio.run(sender.send(message(), ack=True))
    assert fake.ack_reads == 1


def test_encode_error_not_retried(network, fast_config):

    fake = network()
    sender = sender_for(fake, fast_config)
    bad = fluentforward.Message('app.log', 1, {'bad': object()})

    with pytest.raises(fluentforward.EncodeError):
        asyncio.run(sender.send(bad))

    assert fake.connects == 0


def test_cancel_breaks_connection(network, fast_config):
    """ Abandoning a send after the write but before the ack arrives must
        not leave the connection usable; its ack could still show up.
    """

    fake = network(ack='hang')
    sender = sender_for(fake, fast_config)

    async def run():
        task = asyncio.ensure_future(sender.send(message()))

        while fake.ack_reads == 0:
            await asyncio.sleep(0)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(run())

    assert sender.manager.state is ConnectionState.BROKEN
    assert fake.transports[0].is_open is False


def test_fixed_backoff(network):

    config = fluentforward.Config(retry_count=2, retry_wait=0.05)
    fake = network(connect_failures=2)
    sender = sender_for(fake, config)

    start = time.monotonic()
    asyncio.run(sender.send(message()))
    elapsed = time.monotonic() - start

    assert elapsed >= 0.1


def test_exponential_backoff():

    config = fluentforward.Config(backoff='exponential', retry_wait=0.5, max_retry_wait=2)
    wait = retry.backoff(config)

    waits = list()
    for attempt_number in (1, 2, 3, 4, 5):
        state = types.SimpleNamespace(attempt_number=attempt_number)
        waits.append(wait(state))

    assert waits == [0.5, 0.75, 1.125, 1.6875, 2]


def test_custom_wait(network):

    config = fluentforward.Config(retry_count=1, retry_wait=60)
    fake = network(connect_failures=1)
    manager = ConnectionManager(fake, config.timeout)
    sender = retry.Sender(manager, config, wait=tenacity.wait_none())

    asyncio.run(sender.send(message()))
    assert fake.connects == 2


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

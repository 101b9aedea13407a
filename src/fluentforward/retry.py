""" Bounded retry around a single send. One attempt is: embed a fresh chunk
    id (when an ack is wanted), encode, make sure the connection is live,
    write, and verify the ack. Any transport or ack failure drops the
    connection so the next attempt starts from a fresh connect.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Union

from loguru import logger
from tenacity import AsyncRetrying
from tenacity import RetryCallState
from tenacity import RetryError
from tenacity import retry_if_exception_type
from tenacity import stop_after_attempt
from tenacity import wait_exponential
from tenacity import wait_fixed
from tenacity.wait import wait_base

from .config import Config
from .connection import ConnectionManager
from .protocol import ack as ack_module
from .protocol import chunk, fields, wire
from .protocol.message import Message, PackedForward
from .transport.base import TransportError


# Growth factor between successive waits under exponential backoff.
RETRY_INCREMENT_RATE = 1.5

RETRYABLE = (TransportError, wire.DecodeError, ack_module.AckError)


class SendError(Exception):
    """ Every attempt to deliver a message failed. *cause* is the failure
        of the final attempt and *attempts* how many attempts were made.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None, attempts: int = 0):
        super().__init__(message)
        self.cause = cause
        self.attempts = attempts


def backoff(config: Config) -> wait_base:
    """ Return the tenacity wait strategy described by *config*.
    """

    if config.backoff == "exponential":
        return wait_exponential(
            multiplier=config.retry_wait,
            exp_base=RETRY_INCREMENT_RATE,
            max=config.max_retry_wait,
        )

    return wait_fixed(config.retry_wait)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception()
    logger.warning(
        "Send attempt {} failed, retrying in {:.2f} sec: {}",
        retry_state.attempt_number,
        retry_state.next_action.sleep,
        exc,
    )


class Sender:
    """ Deliver messages over the connection held by *manager*. The attempt
        budget and ack behavior come from *config*; *wait* replaces the
        backoff strategy derived from the configuration, and accepts any
        tenacity wait strategy.

        The caller is responsible for exclusive access to *manager* for the
        duration of :func:`send`.
    """

    def __init__(self, manager: ConnectionManager, config: Config, wait: Optional[wait_base] = None):
        self.manager = manager
        self.config = config
        self.wait = wait if wait is not None else backoff(config)

    async def send(self, message: Union[Message, PackedForward], ack: Optional[bool] = None) -> None:
        """ Deliver *message*, retrying up to ``retry_count`` times. Returns
            once the message is written and, if requested, acknowledged;
            raises :class:`SendError` once every attempt has failed.
        """

        if ack is None:
            ack = self.config.request_ack

        attempts = self.config.retry_count + 1
        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=self.wait,
            retry=retry_if_exception_type(RETRYABLE),
            before_sleep=_log_retry,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    await self._attempt(message, ack)
        except RetryError as exc:
            cause = exc.last_attempt.exception()
            logger.error("Giving up on {} after {} attempts: {}", message.tag, attempts, cause)
            raise SendError(f"max retries exceeded: {cause}", cause, attempts) from cause

    async def _attempt(self, message: Union[Message, PackedForward], ack: bool) -> None:

        expected = None
        if ack:
            expected = chunk.generate()
            message = message.with_option(**{fields.CHUNK: expected})

        # Encoding failures are programmer errors, raised before any I/O.
        payload = wire.encode(message)

        transport = await self.manager.ensure_connected()

        try:
            await transport.write_all(payload, self.config.timeout)
            if expected is not None:
                await ack_module.verify(transport, expected, self.config.timeout)
        except RETRYABLE as exc:
            self.manager.mark_broken(exc)
            raise
        except asyncio.CancelledError:
            # A write may be on the wire with its ack unread.
            self.manager.mark_broken("send cancelled")
            raise

"""Forward Protocol wire codec.

Messages are self-delimiting msgpack arrays; there is no frame length.

Message (single event)
    [tag, time, record, option?]

Forward (batched entries)
    [tag, [[time, record], ...], option?]

Ack response
    {"ack": chunk}

``time`` is always written as msgpack extension type 0 carrying two
big-endian u32 values, seconds then nanoseconds.
"""

from __future__ import annotations

import struct
from typing import Any, Union

import msgspec

from . import fields
from .message import Entry, EventTime, Message, PackedForward


_EVENT_TIME = struct.Struct(">II")


class EncodeError(ValueError):
    """A message contains a value with no msgpack representation."""


class DecodeError(ValueError):
    """Bytes received from the collector are not a valid protocol value."""


class Truncated(DecodeError):
    """The bytes end partway through a msgpack value; more may follow."""


def _enc_hook(obj: Any) -> Any:
    if isinstance(obj, EventTime):
        data = _EVENT_TIME.pack(obj.seconds, obj.nanoseconds)
        return msgspec.msgpack.Ext(fields.EVENT_TIME_EXT, data)

    raise NotImplementedError(f"cannot encode {type(obj).__name__!r} values")


def _ext_hook(code: int, data: memoryview) -> Any:
    if code == fields.EVENT_TIME_EXT:
        if len(data) != fields.EVENT_TIME_SIZE:
            raise DecodeError(f"EventTime extension must be {fields.EVENT_TIME_SIZE} bytes, got {len(data)}")
        seconds, nanoseconds = _EVENT_TIME.unpack(data)
        try:
            return EventTime(seconds, nanoseconds)
        except ValueError as exc:
            raise DecodeError(str(exc)) from exc

    return msgspec.msgpack.Ext(code, bytes(data))


_encoder = msgspec.msgpack.Encoder(enc_hook=_enc_hook)
_decoder = msgspec.msgpack.Decoder(ext_hook=_ext_hook)


def _layout(message: Union[Message, PackedForward]) -> list:
    if isinstance(message, Message):
        parts = [message.tag, message.time, message.record]
    elif isinstance(message, PackedForward):
        entries = [[entry.time, entry.record] for entry in message.entries]
        parts = [message.tag, entries]
    else:
        raise EncodeError(f"not a protocol message: {message!r}")

    if message.option:
        parts.append(message.option)

    return parts


def encode(message: Union[Message, PackedForward]) -> bytes:
    """Serialize a Message or PackedForward to msgpack bytes."""

    parts = _layout(message)

    try:
        return _encoder.encode(parts)
    except (msgspec.EncodeError, NotImplementedError, TypeError, OverflowError) as exc:
        raise EncodeError(f"{message.tag}: {exc}") from exc


def unpack(data: bytes) -> Any:
    """Decode one complete msgpack value, with EventTime support. Raises
    :class:`Truncated` when *data* is a prefix of a value, and
    :class:`DecodeError` when no further bytes could make it valid.
    """

    try:
        return _decoder.decode(data)
    except msgspec.DecodeError as exc:
        # msgspec has no dedicated exception for short input.
        if "truncated" in str(exc):
            raise Truncated(str(exc)) from exc
        raise DecodeError(str(exc)) from exc


def _time(value: Any) -> EventTime:
    # Collectors and older clients may still use the legacy integer form.
    if isinstance(value, EventTime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return EventTime.coerce(value)
        except ValueError as exc:
            raise DecodeError(str(exc)) from exc
    raise DecodeError(f"invalid event time: {value!r}")


def _record(value: Any) -> dict:
    if not isinstance(value, dict):
        raise DecodeError(f"record must be a map, got {type(value).__name__}")
    return value


def _option(value: Any) -> dict | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise DecodeError(f"option must be a map, got {type(value).__name__}")
    return value


def decode(data: bytes) -> Union[Message, PackedForward]:
    """Inverse of :func:`encode`."""

    parts = unpack(data)

    if not isinstance(parts, list) or len(parts) < 2:
        raise DecodeError("message must be an array of at least two elements")

    tag = parts[0]
    if not isinstance(tag, str) or tag == "":
        raise DecodeError(f"invalid tag: {tag!r}")

    if isinstance(parts[1], list):
        if len(parts) > 3:
            raise DecodeError("forward message has too many elements")

        entries = []
        for pair in parts[1]:
            if not isinstance(pair, list) or len(pair) != 2:
                raise DecodeError(f"invalid forward entry: {pair!r}")
            entries.append(Entry(_time(pair[0]), _record(pair[1])))

        if not entries:
            raise DecodeError("forward message has no entries")

        option = _option(parts[2]) if len(parts) == 3 else None
        return PackedForward(tag, entries, option)

    if len(parts) not in (3, 4):
        raise DecodeError("message must have three or four elements")

    option = _option(parts[3]) if len(parts) == 4 else None
    return Message(tag, _time(parts[1]), _record(parts[2]), option)


def ack_value(response: Any) -> str:
    """Extract the chunk id from a decoded ack response."""

    if not isinstance(response, dict) or len(response) != 1:
        raise DecodeError(f"ack response must be a one-entry map, got {response!r}")

    try:
        chunk = response[fields.ACK]
    except KeyError:
        raise DecodeError(f"ack response has no {fields.ACK!r} key: {response!r}") from None

    if not isinstance(chunk, str):
        raise DecodeError(f"ack value must be a string, got {type(chunk).__name__}")

    return chunk


def decode_ack(data: bytes) -> str:
    return ack_value(unpack(data))


def encode_ack(chunk: str) -> bytes:
    return _encoder.encode({fields.ACK: chunk})

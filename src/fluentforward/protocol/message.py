""" Class representations of Forward Protocol messages. A :class:`Message`
    carries a single event; a :class:`PackedForward` carries a sequence of
    (time, record) entries sharing one tag. Both are plain containers; the
    translation to and from bytes lives in :mod:`wire`.
"""

import datetime
import time as timemodule

from . import fields


_nanoseconds = 1_000_000_000
_u32_max = 0xFFFFFFFF


class EventTime:
    """ The Fluentd timestamp: an unsigned 32-bit count of *seconds* since
        the UNIX epoch, plus *nanoseconds* within that second. On the wire
        this is always the 8-byte extension form, never a bare integer, so
        that the collector retains sub-second precision.
    """

    __slots__ = ('seconds', 'nanoseconds')

    def __init__(self, seconds, nanoseconds=0):

        seconds = int(seconds)
        nanoseconds = int(nanoseconds)

        if seconds < 0 or seconds > _u32_max:
            raise ValueError('EventTime seconds out of range: ' + str(seconds))

        if nanoseconds < 0 or nanoseconds >= _nanoseconds:
            raise ValueError('EventTime nanoseconds out of range: ' + str(nanoseconds))

        object.__setattr__(self, 'seconds', seconds)
        object.__setattr__(self, 'nanoseconds', nanoseconds)


    def __setattr__(self, name, value):
        raise AttributeError('EventTime is immutable')


    def __eq__(self, other):
        if not isinstance(other, EventTime):
            return NotImplemented
        return self._key() == other._key()


    def __lt__(self, other):
        if not isinstance(other, EventTime):
            return NotImplemented
        return self._key() < other._key()


    def __le__(self, other):
        if not isinstance(other, EventTime):
            return NotImplemented
        return self._key() <= other._key()


    def __hash__(self):
        return hash(self._key())


    def __repr__(self):
        return 'EventTime(%d, %d)' % (self.seconds, self.nanoseconds)


    def _key(self):
        return (self.seconds, self.nanoseconds)


    @classmethod
    def now(cls):
        """ Return the current wall-clock time with nanosecond resolution.
        """

        seconds, nanoseconds = divmod(timemodule.time_ns(), _nanoseconds)
        return cls(seconds, nanoseconds)


    @classmethod
    def from_timestamp(cls, timestamp):
        """ Convert a UNIX epoch *timestamp*, which may be fractional.
        """

        seconds = int(timestamp)
        nanoseconds = round((timestamp - seconds) * _nanoseconds)

        # Rounding can carry a fraction like .9999999999 into a full second.
        if nanoseconds >= _nanoseconds:
            seconds += 1
            nanoseconds -= _nanoseconds

        return cls(seconds, nanoseconds)


    @classmethod
    def coerce(cls, value):
        """ Accept an :class:`EventTime`, an integer or float UNIX timestamp,
            or a :class:`datetime.datetime`, and return an :class:`EventTime`.
            Naive datetimes are interpreted as local time, the same as
            :func:`datetime.datetime.timestamp` does.
        """

        if isinstance(value, cls):
            return value

        if isinstance(value, datetime.datetime):
            seconds = int(value.timestamp())
            return cls(seconds, value.microsecond * 1000)

        if isinstance(value, bool):
            raise TypeError('cannot interpret a boolean as an EventTime')

        if isinstance(value, int):
            return cls(value)

        if isinstance(value, float):
            return cls.from_timestamp(value)

        raise TypeError('cannot interpret %r as an EventTime' % (value,))


    def to_timestamp(self):
        return self.seconds + self.nanoseconds / _nanoseconds


# end of class EventTime



def _option(option):

    if option is None:
        return None

    option = dict(option)
    if len(option) == 0:
        return None

    return option



class Message:
    """ A single-event message: the *tag* routes the event on the collector,
        *time* is an :class:`EventTime`, *record* is the event body, and the
        optional *option* mapping carries protocol extras such as the
        ``chunk`` identifier requesting an acknowledgement.

        The wire layout is positional, ``[tag, time, record, option]``,
        with the option omitted entirely when there is none.
    """

    def __init__(self, tag, time, record, option=None):

        if not isinstance(tag, str) or tag == '':
            raise ValueError('tag must be a non-empty string')

        self.tag = tag
        self.time = EventTime.coerce(time)
        self.record = dict(record)
        self.option = _option(option)


    def __eq__(self, other):
        if not isinstance(other, Message):
            return NotImplemented

        return (self.tag == other.tag and self.time == other.time and
                self.record == other.record and self.option == other.option)


    def __repr__(self):
        return 'Message(%r, %r, %r, option=%r)' % (self.tag, self.time, self.record, self.option)


    @property
    def chunk(self):
        if self.option is None:
            return None
        return self.option.get(fields.CHUNK)


    def with_option(self, **items):
        """ Return a copy of this :class:`Message` with *items* merged into
            the option mapping. The original is left untouched.
        """

        option = dict(self.option or ())
        option.update(items)
        return Message(self.tag, self.time, self.record, option)


# end of class Message



class Entry:
    """ One (time, record) pair inside a :class:`PackedForward`.
    """

    __slots__ = ('time', 'record')

    def __init__(self, time, record):
        self.time = EventTime.coerce(time)
        self.record = dict(record)


    def __eq__(self, other):
        if not isinstance(other, Entry):
            return NotImplemented
        return self.time == other.time and self.record == other.record


    def __repr__(self):
        return 'Entry(%r, %r)' % (self.time, self.record)


    def __iter__(self):
        return iter((self.time, self.record))



class PackedForward:
    """ A batch of events under a single *tag*. The *entries* may be
        :class:`Entry` instances or plain (time, record) pairs; they are
        normalized to :class:`Entry` on construction. The wire layout is
        ``[tag, [[time, record], ...], option]``.
    """

    def __init__(self, tag, entries, option=None):

        if not isinstance(tag, str) or tag == '':
            raise ValueError('tag must be a non-empty string')

        normalized = list()
        for entry in entries:
            if not isinstance(entry, Entry):
                time, record = entry
                entry = Entry(time, record)
            normalized.append(entry)

        if len(normalized) == 0:
            raise ValueError('a forward message needs at least one entry')

        self.tag = tag
        self.entries = tuple(normalized)
        self.option = _option(option)


    def __eq__(self, other):
        if not isinstance(other, PackedForward):
            return NotImplemented

        return (self.tag == other.tag and self.entries == other.entries and
                self.option == other.option)


    def __len__(self):
        return len(self.entries)


    def __repr__(self):
        return 'PackedForward(%r, %r, option=%r)' % (self.tag, list(self.entries), self.option)


    @property
    def chunk(self):
        if self.option is None:
            return None
        return self.option.get(fields.CHUNK)


    def with_option(self, **items):
        option = dict(self.option or ())
        option.update(items)
        return PackedForward(self.tag, self.entries, option)


# end of class PackedForward



class EventRecord:
    """ One application log event: a *tag*, the event *time*, and an
        ordered mapping of *fields*. The fields are copied on construction
        so that later changes by the caller cannot alter the event.
    """

    __slots__ = ('tag', 'time', 'fields')

    def __init__(self, tag, fields, time=None):

        if not isinstance(tag, str) or tag == '':
            raise ValueError('tag must be a non-empty string')

        if time is None:
            time = EventTime.now()

        object.__setattr__(self, 'tag', tag)
        object.__setattr__(self, 'time', EventTime.coerce(time))
        object.__setattr__(self, 'fields', dict(fields))


    def __setattr__(self, name, value):
        raise AttributeError('EventRecord is immutable')


    def __repr__(self):
        return 'EventRecord(%r, %r, time=%r)' % (self.tag, self.fields, self.time)


    def to_message(self, option=None):
        return Message(self.tag, self.time, self.fields, option)


# end of class EventRecord


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

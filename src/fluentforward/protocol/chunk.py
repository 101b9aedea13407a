""" Chunk identifiers correlate an acknowledgement-requesting send with the
    collector's ack response. A fresh identifier is generated for every
    attempt; sends are serialized, so at most one identifier is outstanding
    on a connection and no registry of live identifiers is needed.
"""

import base64
import uuid


def generate():
    """ Return a new chunk identifier: 128 random bits, base64-encoded, as
        it appears in the ``chunk`` option on the wire.
    """

    raw = uuid.uuid4().bytes
    return base64.b64encode(raw).decode('ascii')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:

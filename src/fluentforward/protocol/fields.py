"""Protocol constants.

Keep these in one place to avoid stringly-typed message handling.
"""

# Option and ack response keys.
CHUNK = "chunk"
ACK = "ack"
SIZE = "size"

# Fluentd EventTime is carried as msgpack extension type 0, with a fixed
# payload of two big-endian unsigned 32-bit integers.
EVENT_TIME_EXT = 0
EVENT_TIME_SIZE = 8

DEFAULT_PORT = 24224

"""Snowflake identifiers.

A 64-bit id is laid out as ``timestamp(41) | node(10) | sequence(12)`` where
the timestamp counts milliseconds since ``EPOCH_MS``. Ids generated by one
generator strictly increase; generators on different nodes never collide.
Zero is reserved for "not yet assigned".

Ids travel as decimal strings everywhere outside this module. With the chosen
epoch every id generated from mid-2018 on has 19 digits, so string order and
numeric order agree for ids of the same width.
"""

import threading
import time

from orderease.shared.errors import ValidationFailed

EPOCH_MS = 1288834974657

NODE_BITS = 10
SEQUENCE_BITS = 12

MAX_NODE_ID = (1 << NODE_BITS) - 1
SEQUENCE_MASK = (1 << SEQUENCE_BITS) - 1

UNSET_ID = 0


class SnowflakeGenerator:
    def __init__(self, node_id: int = 1, clock=None):
        if not 0 <= node_id <= MAX_NODE_ID:
            raise ValueError(f"node_id must be between 0 and {MAX_NODE_ID}, got {node_id}")

        self.node_id = node_id
        self._clock = clock or (lambda: time.time_ns() // 1_000_000)
        self._lock = threading.Lock()
        self._last_ms = -1
        self._sequence = 0

    def _wait_next_ms(self, last_ms: int) -> int:
        now = self._clock()
        while now <= last_ms:
            time.sleep(0.0001)
            now = self._clock()
        return now

    def generate(self) -> int:
        with self._lock:
            now = self._clock()
            # A clock that steps backwards keeps issuing from the last millisecond
            if now < self._last_ms:
                now = self._last_ms

            if now == self._last_ms:
                self._sequence = (self._sequence + 1) & SEQUENCE_MASK
                if self._sequence == 0:
                    now = self._wait_next_ms(self._last_ms)
            else:
                self._sequence = 0

            self._last_ms = now
            return ((now - EPOCH_MS) << (NODE_BITS + SEQUENCE_BITS)) | (self.node_id << SEQUENCE_BITS) | self._sequence


_generator = SnowflakeGenerator()


def configure_generator(node_id: int) -> None:
    """Replace the process generator, e.g. with the node id from settings."""
    global _generator
    _generator = SnowflakeGenerator(node_id=node_id)


def generate_id() -> int:
    return _generator.generate()


def new_id() -> str:
    """Default factory for identifier fields."""
    return str(_generator.generate())


def parse_id(value) -> int:
    """Parse an id given as an int or a decimal string.

    ``0`` and ``"0"`` parse to ``UNSET_ID``. Anything that is not a run of
    decimal digits raises ``ValidationFailed``.
    """
    if isinstance(value, bool):
        raise ValidationFailed(f"Invalid id: {value!r}", field="id")
    if isinstance(value, int):
        if value < 0 or value >= 1 << 64:
            raise ValidationFailed(f"Invalid id: {value}", field="id")
        return value

    text = str(value).strip() if value is not None else ""
    if not text or not text.isascii() or not text.isdigit():
        raise ValidationFailed(f"Invalid id: {value!r}", field="id")

    parsed = int(text)
    if parsed >= 1 << 64:
        raise ValidationFailed(f"Invalid id: {value!r}", field="id")
    return parsed

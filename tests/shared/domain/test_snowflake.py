"""Tests for snowflake id generation and parsing."""

import threading
from datetime import UTC, datetime

import pytest
from orderease.shared.errors import ValidationFailed
from orderease.shared.identity import (
    EPOCH_MS,
    NODE_BITS,
    SEQUENCE_BITS,
    UNSET_ID,
    SnowflakeGenerator,
    generate_id,
    new_id,
    parse_id,
)


class _FakeClock:
    def __init__(self, *readings):
        self.readings = list(readings)
        self.last = readings[-1]

    def __call__(self):
        if self.readings:
            self.last = self.readings.pop(0)
        return self.last


def _decode(value):
    sequence = value & ((1 << SEQUENCE_BITS) - 1)
    node = (value >> SEQUENCE_BITS) & ((1 << NODE_BITS) - 1)
    timestamp = (value >> (NODE_BITS + SEQUENCE_BITS)) + EPOCH_MS
    return timestamp, node, sequence


class TestGenerate:
    def test_never_zero(self):
        assert all(generate_id() != UNSET_ID for _ in range(100))

    def test_consecutive_ids_strictly_increase(self):
        ids = [generate_id() for _ in range(5000)]
        assert all(a < b for a, b in zip(ids, ids[1:]))

    def test_new_id_is_decimal_text(self):
        value = new_id()
        assert value.isdigit()
        assert len(value) == 19

    def test_ids_reach_nineteen_digits_in_2018(self):
        shift = NODE_BITS + SEQUENCE_BITS
        first_wide_ms = EPOCH_MS + -(-(10**18) // (1 << shift))

        assert datetime.fromtimestamp(first_wide_ms / 1000, UTC).year == 2018
        assert len(str((first_wide_ms - EPOCH_MS) << shift)) == 19
        assert len(str((first_wide_ms - 1 - EPOCH_MS) << shift)) == 18

    def test_layout_carries_node_and_sequence(self):
        clock = _FakeClock(EPOCH_MS + 1000, EPOCH_MS + 1000, EPOCH_MS + 1001)
        generator = SnowflakeGenerator(node_id=7, clock=clock)

        first, second, third = generator.generate(), generator.generate(), generator.generate()

        assert _decode(first) == (EPOCH_MS + 1000, 7, 0)
        assert _decode(second) == (EPOCH_MS + 1000, 7, 1)
        assert _decode(third) == (EPOCH_MS + 1001, 7, 0)

    def test_clock_stepping_back_keeps_increasing(self):
        clock = _FakeClock(EPOCH_MS + 5000, EPOCH_MS + 4000, EPOCH_MS + 4000)
        generator = SnowflakeGenerator(node_id=1, clock=clock)

        ids = [generator.generate() for _ in range(3)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 3

    def test_distinct_nodes_do_not_collide(self):
        clock_a = _FakeClock(EPOCH_MS + 10)
        clock_b = _FakeClock(EPOCH_MS + 10)
        a = SnowflakeGenerator(node_id=1, clock=clock_a)
        b = SnowflakeGenerator(node_id=2, clock=clock_b)

        assert {a.generate() for _ in range(50)}.isdisjoint({b.generate() for _ in range(50)})

    def test_unique_across_threads(self):
        generator = SnowflakeGenerator(node_id=3)
        results = []

        def worker():
            results.extend(generator.generate() for _ in range(500))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(set(results)) == 2000

    @pytest.mark.parametrize("node_id", [-1, 1024])
    def test_node_id_out_of_range(self, node_id):
        with pytest.raises(ValueError):
            SnowflakeGenerator(node_id=node_id)


class TestParse:
    def test_parse_digits(self):
        assert parse_id("1234567890123456789") == 1234567890123456789

    def test_parse_int(self):
        assert parse_id(42) == 42

    def test_zero_is_unset(self):
        assert parse_id("0") == UNSET_ID

    @pytest.mark.parametrize("raw", ["", "12a", "-5", "1.5", None, True, "１２"])
    def test_rejects_non_digits(self, raw):
        with pytest.raises(ValidationFailed):
            parse_id(raw)

    def test_rejects_values_beyond_64_bits(self):
        with pytest.raises(ValidationFailed):
            parse_id(str(1 << 64))

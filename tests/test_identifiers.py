"""
Test Giveaway Identifiers
Random ids are non-zero, 32-bit and never collide with active ones
"""

import random

import pytest

from conftest import SequenceRng
from giveaway_system.errors import IdentifierExhausted
from giveaway_system.identifiers import MAX_DRAWING_ID, next_drawing_id


def test_generated_ids_are_non_zero_32_bit():
    rng = random.Random(7)
    for _ in range(500):
        drawing_id = next_drawing_id(set(), rng=rng)
        assert 1 <= drawing_id <= MAX_DRAWING_ID


def test_default_source_produces_valid_id():
    drawing_id = next_drawing_id({1, 2, 3})
    assert 1 <= drawing_id <= MAX_DRAWING_ID
    assert drawing_id not in {1, 2, 3}


def test_collision_is_retried():
    rng = SequenceRng([42, 42, 43])
    assert next_drawing_id({42}, rng=rng) == 43
    assert rng.calls == 3


def test_retries_are_capped():
    rng = SequenceRng([5] * 10)
    with pytest.raises(IdentifierExhausted):
        next_drawing_id({5}, rng=rng, max_attempts=3)
    assert rng.calls == 3

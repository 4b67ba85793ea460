import pytest

from nexus_builder.seeded_random import SeededRandom, hash_seed


def test_hash_matches_31_multiplier_string_hash() -> None:
    assert hash_seed("") == 0
    assert hash_seed("a") == 97
    assert hash_seed("ab") == 97 * 31 + 98


def test_hash_is_non_negative_for_long_seeds() -> None:
    value = hash_seed("the quick brown fox jumps over the lazy dog" * 4)

    assert 0 <= value <= 2**31


def test_first_value_follows_lcg_step() -> None:
    assert SeededRandom("a").next() == 18374 / 233280
    assert SeededRandom("").next() == 49297 / 233280


def test_identical_seeds_yield_identical_sequences() -> None:
    first = SeededRandom("nexus")
    second = SeededRandom("nexus")

    assert [first.next() for _ in range(50)] == [second.next() for _ in range(50)]


def test_values_stay_in_range() -> None:
    rng = SeededRandom("bounds")
    for _ in range(500):
        value = rng.next()
        assert 0 <= value < 1
        assert 3 <= rng.next_int(3, 7) <= 7
        assert -1.5 <= rng.next_float(-1.5, 2.5) < 2.5


def test_choice_picks_member_and_rejects_empty() -> None:
    rng = SeededRandom("choice")
    items = ["wall", "obstacle", "portal"]

    assert rng.choice(items) in items
    with pytest.raises(IndexError):
        rng.choice([])

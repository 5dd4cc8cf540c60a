import logging

import pytest

from pinocchio.program_error import ErrorKind, ProgramError
from pinocchio.pubkey import (
    MAX_SEED_LEN,
    MAX_SEEDS,
    checked_create_program_address,
    create_program_address,
    find_program_address,
    from_str,
    is_on_curve,
    log,
    to_str,
    try_find_program_address,
)

PROGRAM_ID = bytes(range(32))


def test_all_ones_decodes_to_zero_key():
    assert from_str("1" * 32) == bytes(32)
    assert to_str(bytes(32)) == "1" * 32


@pytest.mark.parametrize(
    "key", [bytes(range(32)), bytes([0xFF] * 32), bytes(5) + bytes([7] * 27)]
)
def test_base58_round_trip(key):
    assert from_str(to_str(key)) == key


def test_from_str_rejects_invalid_character():
    with pytest.raises(ValueError):
        from_str("0" * 32)


def test_from_str_rejects_wrong_length():
    with pytest.raises(ValueError):
        from_str("1" * 31)


def test_to_str_rejects_wrong_length():
    with pytest.raises(ValueError):
        to_str(bytes(31))


def test_base_point_is_on_curve():
    base_point = bytes.fromhex("58" + "66" * 31)
    assert is_on_curve(base_point) is True


def test_identity_is_on_curve():
    assert is_on_curve(bytes([1]) + bytes(31)) is True


def test_found_address_is_off_curve_and_reproducible():
    seeds = [b"vault", b"user"]
    address, bump = find_program_address(seeds, PROGRAM_ID)
    assert not is_on_curve(address)
    assert create_program_address([*seeds, bytes([bump])], PROGRAM_ID) == address


def test_higher_bumps_are_on_curve():
    seeds = [b"vault"]
    _, bump = find_program_address(seeds, PROGRAM_ID)
    for higher in range(bump + 1, 256):
        with pytest.raises(ProgramError) as info:
            create_program_address([*seeds, bytes([higher])], PROGRAM_ID)
        assert info.value.kind is ErrorKind.INVALID_SEEDS


def test_seed_concatenation_collides():
    one = try_find_program_address([b"abcdef"], PROGRAM_ID)
    split = try_find_program_address([b"abc", b"def"], PROGRAM_ID)
    assert one == split


def test_different_program_ids_give_different_addresses():
    first = find_program_address([b"seed"], PROGRAM_ID)[0]
    second = find_program_address([b"seed"], bytes(32))[0]
    assert first != second
    assert len(first) == 32 and len(second) == 32


def test_try_find_rejects_max_seed_count():
    seeds = [b"s"] * MAX_SEEDS
    assert try_find_program_address(seeds, PROGRAM_ID) is None


def test_try_find_rejects_long_seed():
    assert try_find_program_address([b"x" * (MAX_SEED_LEN + 1)], PROGRAM_ID) is None


def test_find_raises_when_no_address():
    with pytest.raises(RuntimeError):
        find_program_address([b"s"] * MAX_SEEDS, PROGRAM_ID)


def test_checked_create_too_many_seeds():
    with pytest.raises(ProgramError) as info:
        checked_create_program_address([b"s"] * (MAX_SEEDS + 1), PROGRAM_ID)
    assert info.value.kind is ErrorKind.MAX_SEED_LENGTH_EXCEEDED


def test_checked_create_seed_too_long():
    with pytest.raises(ProgramError) as info:
        checked_create_program_address([b"x" * (MAX_SEED_LEN + 1)], PROGRAM_ID)
    assert info.value.kind is ErrorKind.MAX_SEED_LENGTH_EXCEEDED


def test_checked_create_accepts_max_seeds():
    seeds = [bytes([i]) for i in range(MAX_SEEDS - 1)]
    address, bump = find_program_address(seeds, PROGRAM_ID)
    assert checked_create_program_address([*seeds, bytes([bump])], PROGRAM_ID) == address


def test_create_rejects_bad_program_id():
    with pytest.raises(ValueError):
        create_program_address([b"seed"], bytes(10))


def test_log_writes_base58(caplog):
    with caplog.at_level(logging.INFO, logger="pinocchio"):
        log(PROGRAM_ID)
    assert to_str(PROGRAM_ID) in caplog.text
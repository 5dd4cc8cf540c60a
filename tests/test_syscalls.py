import pytest

from pinocchio.syscalls import SYSCALL_NAMES, murmur3_32, sys_hash


def test_empty_input_seed_zero():
    assert murmur3_32(b"", 0) == 0


def test_empty_input_seed_one():
    assert murmur3_32(b"", 1) == 0x514E28B7


def test_known_vector_test():
    assert murmur3_32(b"test", 0) == 0xBA6BD213


@pytest.mark.parametrize("length", range(0, 13))
def test_result_fits_u32(length):
    value = murmur3_32(bytes(range(length)), 0xDEADBEEF)
    assert 0 <= value <= 0xFFFF_FFFF


def test_seed_changes_result():
    assert murmur3_32(b"abc", 0) != murmur3_32(b"abc", 1)


def test_tail_bytes_matter():
    hashes = {murmur3_32(b"abcd" + b"x" * n, 0) for n in range(4)}
    assert len(hashes) == 4


def test_deterministic_and_accepts_bytearray():
    assert murmur3_32(bytearray(b"payload"), 7) == murmur3_32(b"payload", 7)


def test_sys_hash_is_murmur_of_name():
    assert sys_hash("sol_log_") == murmur3_32(b"sol_log_", 0)


def test_syscall_hashes_are_distinct():
    hashes = [sys_hash(name) for name in SYSCALL_NAMES]
    assert len(set(hashes)) == len(SYSCALL_NAMES)
"""Syscall names and the hash that identifies a static syscall."""

from __future__ import annotations

_MASK32 = 0xFFFF_FFFF

#: Names of the syscalls available to a program.
SYSCALL_NAMES = (
    "sol_log_",
    "sol_log_64_",
    "sol_log_compute_units_",
    "sol_log_pubkey",
    "sol_create_program_address",
    "sol_try_find_program_address",
    "sol_sha256",
    "sol_keccak256",
    "sol_secp256k1_recover",
    "sol_blake3",
    "sol_get_clock_sysvar",
    "sol_get_epoch_schedule_sysvar",
    "sol_get_fees_sysvar",
    "sol_get_rent_sysvar",
    "sol_get_last_restart_slot",
    "sol_memcpy_",
    "sol_memmove_",
    "sol_memcmp_",
    "sol_memset_",
    "sol_invoke_signed_c",
    "sol_invoke_signed_rust",
    "sol_set_return_data",
    "sol_get_return_data",
    "sol_log_data",
    "sol_get_processed_sibling_instruction",
    "sol_get_stack_height",
    "sol_curve_validate_point",
    "sol_curve_group_op",
    "sol_curve_multiscalar_mul",
    "sol_curve_pairing_map",
    "sol_alt_bn128_group_op",
    "sol_big_mod_exp",
    "sol_get_epoch_rewards_sysvar",
    "sol_poseidon",
    "sol_remaining_compute_units",
    "sol_alt_bn128_compression",
)


def _rotl32(value: int, count: int) -> int:
    return ((value << count) | (value >> (32 - count))) & _MASK32


def _pre_mix(chunk: bytes) -> int:
    k = int.from_bytes(chunk.ljust(4, b"\0"), "little")
    k = (k * 0xCC9E2D51) & _MASK32
    k = _rotl32(k, 15)
    return (k * 0x1B873593) & _MASK32


def murmur3_32(buf: bytes, seed: int) -> int:
    """32-bit MurmurHash3 of ``buf`` with the given seed."""
    data = bytes(buf)
    h = seed & _MASK32
    whole = len(data) - len(data) % 4
    for start in range(0, whole, 4):
        h ^= _pre_mix(data[start:start + 4])
        h = _rotl32(h, 13)
        h = (h * 5 + 0xE6546B64) & _MASK32
    tail = data[whole:]
    if tail:
        h ^= _pre_mix(tail)
    h ^= len(data) & _MASK32
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & _MASK32
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & _MASK32
    h ^= h >> 16
    return h


def sys_hash(name: str) -> int:
    """The identifier of a static syscall: the murmur3 hash of its name."""
    return murmur3_32(name.encode(), 0)
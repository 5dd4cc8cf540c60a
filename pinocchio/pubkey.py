"""Public keys, their base58 text form and program derived addresses."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Sequence

from pinocchio.program_error import ErrorKind, ProgramError

#: Number of bytes in a pubkey.
PUBKEY_BYTES = 32

#: Maximum length of a derived pubkey seed.
MAX_SEED_LEN = 32

#: Maximum number of seeds.
MAX_SEEDS = 16

#: Suffix hashed after the seeds and program id to derive an address.
PDA_MARKER = b"ProgramDerivedAddress"

_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_ALPHABET_INDEX = {char: index for index, char in enumerate(_ALPHABET)}

# Edwards25519 field prime and curve constant.
_P = 2**255 - 19
_D = (-121665 * pow(121666, _P - 2, _P)) % _P
_Y_MASK = (1 << 255) - 1

_logger = logging.getLogger("pinocchio")


def _as_pubkey(pubkey) -> bytes:
    key = bytes(pubkey)
    if len(key) != PUBKEY_BYTES:
        raise ValueError(f"a pubkey is {PUBKEY_BYTES} bytes, got {len(key)}")
    return key


def log(pubkey) -> None:
    """Log a pubkey in its base58 form."""
    _logger.info("Program log: %s", to_str(pubkey))


def from_str(value: str) -> bytes:
    """Decode a base58 string into a 32-byte pubkey."""
    number = 0
    for char in value:
        digit = _ALPHABET_INDEX.get(char)
        if digit is None:
            raise ValueError(f"invalid base58 character: {char!r}")
        number = number * 58 + digit
    zeros = len(value) - len(value.lstrip("1"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    decoded = b"\0" * zeros + body
    if len(decoded) != PUBKEY_BYTES:
        raise ValueError(
            f"base58 string decodes to {len(decoded)} bytes, expected {PUBKEY_BYTES}"
        )
    return decoded


def to_str(pubkey) -> str:
    """Encode a pubkey as base58 text."""
    key = _as_pubkey(pubkey)
    number = int.from_bytes(key, "big")
    digits = []
    while number:
        number, remainder = divmod(number, 58)
        digits.append(_ALPHABET[remainder])
    zeros = len(key) - len(key.lstrip(b"\0"))
    return "1" * zeros + "".join(reversed(digits))


def is_on_curve(pubkey) -> bool:
    """Whether the bytes decompress to a point on the ed25519 curve."""
    y = (int.from_bytes(_as_pubkey(pubkey), "little") & _Y_MASK) % _P
    y2 = y * y % _P
    u = (y2 - 1) % _P
    v = (_D * y2 + 1) % _P
    x2 = u * pow(v, _P - 2, _P) % _P
    return x2 == 0 or pow(x2, (_P - 1) // 2, _P) == 1


def _seed_bytes(seeds: Sequence) -> list[bytes]:
    return [bytes(seed) for seed in seeds]


def _seeds_too_long(seeds: list[bytes], limit: int) -> bool:
    return len(seeds) > limit or any(len(seed) > MAX_SEED_LEN for seed in seeds)


def create_program_address(seeds: Sequence, program_id) -> bytes:
    """Derive a program address from seeds, failing if it lands on the curve."""
    parts = _seed_bytes(seeds)
    if _seeds_too_long(parts, MAX_SEEDS):
        raise ProgramError(ErrorKind.MAX_SEED_LENGTH_EXCEEDED)
    hasher = hashlib.sha256()
    for part in parts:
        hasher.update(part)
    hasher.update(_as_pubkey(program_id))
    hasher.update(PDA_MARKER)
    address = hasher.digest()
    if is_on_curve(address):
        raise ProgramError(ErrorKind.INVALID_SEEDS)
    return address


def checked_create_program_address(seeds: Sequence, program_id) -> bytes:
    """Validate seed count and lengths, then derive the program address."""
    parts = _seed_bytes(seeds)
    if _seeds_too_long(parts, MAX_SEEDS):
        raise ProgramError(ErrorKind.MAX_SEED_LENGTH_EXCEEDED)
    return create_program_address(parts, program_id)


def try_find_program_address(seeds: Sequence, program_id) -> tuple[bytes, int] | None:
    """Find a program address and its bump seed, or None if there is none."""
    parts = _seed_bytes(seeds)
    if _seeds_too_long(parts, MAX_SEEDS - 1):
        return None
    key = _as_pubkey(program_id)
    for bump in range(0xFF, -1, -1):
        try:
            address = create_program_address([*parts, bytes([bump])], key)
        except ProgramError as error:
            if error.kind is ErrorKind.INVALID_SEEDS:
                continue
            return None
        return address, bump
    return None


def find_program_address(seeds: Sequence, program_id) -> tuple[bytes, int]:
    """Find a program address and its bump seed, raising if none exists."""
    found = try_find_program_address(seeds, program_id)
    if found is None:
        raise RuntimeError("Unable to find a viable program address bump seed")
    return found
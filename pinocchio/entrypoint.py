"""Reading the runtime's serialized program input, and the default bump allocator."""

from __future__ import annotations

import functools
import struct
from collections.abc import Callable, Sequence

from pinocchio.account_info import (
    ACCOUNT_HEADER_LEN,
    MAX_PERMITTED_DATA_INCREASE,
    AccountInfo,
)
from pinocchio.program_error import (
    BPF_ALIGN_OF_U128,
    MAX_TX_ACCOUNTS,
    NON_DUP_MARKER,
    SUCCESS,
    ProgramError,
)
from pinocchio.pubkey import PUBKEY_BYTES

#: Start address of the memory region used for the program heap.
HEAP_START_ADDRESS = 0x300000000

#: Length of the memory region used for the program heap.
HEAP_LENGTH = 32 * 1024

_U64 = struct.Struct("<Q")
_DATA_LEN_FIELD = 80
_POINTER_SIZE = 8
_DUPLICATE_LEN = 8

ProcessInstruction = Callable[[bytes, Sequence[AccountInfo], bytes], None]


def _read_u64(input, offset: int) -> int:
    try:
        return _U64.unpack_from(input, offset)[0]
    except struct.error as error:
        raise ValueError(f"input truncated at offset {offset}") from error


def _marker(input, offset: int) -> int:
    if offset >= len(input):
        raise ValueError(f"input truncated at offset {offset}")
    return input[offset]


def _skip_account(input, offset: int) -> int:
    """Offset just past a non-duplicate account that starts at ``offset``."""
    data_len = _read_u64(input, offset + _DATA_LEN_FIELD)
    end = offset + ACCOUNT_HEADER_LEN + data_len + MAX_PERMITTED_DATA_INCREASE
    end += -end % BPF_ALIGN_OF_U128
    return end + _U64.size


def _read_instruction(input, offset: int) -> tuple[bytes, bytes]:
    """Instruction data and program id stored from ``offset`` onwards."""
    data_len = _read_u64(input, offset)
    start = offset + _U64.size
    end = start + data_len
    if end + PUBKEY_BYTES > len(input):
        raise ValueError("input truncated in instruction data or program id")
    return bytes(input[start:end]), bytes(input[end:end + PUBKEY_BYTES])


def deserialize(
    input, max_accounts: int = MAX_TX_ACCOUNTS
) -> tuple[bytes, list[AccountInfo], bytes]:
    """Parse a serialized input buffer into (program_id, accounts, instruction_data).

    At most ``max_accounts`` accounts are returned; the rest are skipped. The
    borrow state of every returned non-duplicate account is reset, and a
    duplicate entry yields the same view as the account it duplicates.
    """
    if max_accounts < 0:
        raise ValueError(f"negative account limit: {max_accounts}")
    total = _read_u64(input, 0)
    offset = _U64.size
    accounts: list[AccountInfo] = []

    for position in range(total):
        marker = _marker(input, offset)
        processed = position < max_accounts
        if marker == NON_DUP_MARKER:
            if processed:
                # repurpose the duplicate marker to track borrows
                input[offset] = 0
                accounts.append(AccountInfo(input, offset))
            offset = _skip_account(input, offset)
        else:
            if processed:
                if marker >= len(accounts):
                    raise ValueError(
                        f"duplicate of account {marker} at position {position}"
                    )
                accounts.append(accounts[marker])
            offset += _DUPLICATE_LEN

    instruction_data, program_id = _read_instruction(input, offset)
    return program_id, accounts, instruction_data


def entrypoint(
    process_instruction: ProcessInstruction, maximum: int = MAX_TX_ACCOUNTS
) -> Callable[[bytearray], int]:
    """Wrap an instruction processor into a function from input buffer to result code."""

    @functools.wraps(process_instruction)
    def run(input) -> int:
        program_id, accounts, instruction_data = deserialize(input, maximum)
        try:
            process_instruction(program_id, accounts, instruction_data)
        except ProgramError as error:
            return error.to_code()
        return SUCCESS

    return run


class BumpAllocator:
    """Allocator that hands out memory downwards from the top and never frees."""

    def __init__(self, start: int, length: int) -> None:
        if start < 0 or length < 0:
            raise ValueError("heap start and length must not be negative")
        self.start = start
        self.length = length
        self._position = 0

    def alloc(self, size: int, align: int) -> int | None:
        """Address of a new block, or None when the heap is exhausted."""
        if size < 0:
            raise ValueError(f"negative allocation size: {size}")
        if align <= 0 or align & (align - 1):
            raise ValueError(f"alignment must be a power of two: {align}")
        position = self._position or self.start + self.length
        position = max(position - size, 0)
        position &= ~(align - 1)
        if position < self.start + _POINTER_SIZE:
            return None
        self._position = position
        return position

    def dealloc(self, address: int, size: int, align: int) -> None:
        """Bump allocators do not free memory."""
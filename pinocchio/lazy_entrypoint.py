"""On-demand access to the serialized program input."""

from __future__ import annotations

import functools
from collections.abc import Callable
from dataclasses import dataclass

from pinocchio.account_info import AccountInfo
from pinocchio.entrypoint import (
    _DUPLICATE_LEN,
    _marker,
    _read_instruction,
    _read_u64,
    _skip_account,
)
from pinocchio.program_error import (
    NON_DUP_MARKER,
    SUCCESS,
    ErrorKind,
    ProgramError,
)

_U64_SIZE = 8


@dataclass(frozen=True)
class MaybeAccount:
    """Either an account or the index of the account it duplicates."""

    account: AccountInfo | None = None
    duplicate_of: int | None = None

    def __post_init__(self) -> None:
        if (self.account is None) == (self.duplicate_of is None):
            raise ValueError("exactly one of account and duplicate_of must be set")

    @property
    def is_duplicate(self) -> bool:
        """Whether this entry refers back to an earlier account."""
        return self.duplicate_of is not None

    def assume_account(self) -> AccountInfo:
        """The wrapped account; raises if this entry is a duplicate."""
        if self.account is None:
            raise RuntimeError("Duplicated account")
        return self.account


def _read_account(input, offset: int) -> tuple[MaybeAccount, int]:
    marker = _marker(input, offset)
    if marker == NON_DUP_MARKER:
        input[offset] = 0
        account = AccountInfo(input, offset)
        return MaybeAccount(account=account), _skip_account(input, offset)
    return MaybeAccount(duplicate_of=marker), offset + _DUPLICATE_LEN


class InstructionContext:
    """Reads accounts and instruction data from the input buffer as they are asked for."""

    def __init__(self, input) -> None:
        self._input = input
        self._remaining = _read_u64(input, 0)
        self._offset = _U64_SIZE

    def next_account(self) -> MaybeAccount:
        """Read the next account; fails with NotEnoughAccountKeys if none remain."""
        if self._remaining == 0:
            raise ProgramError(ErrorKind.NOT_ENOUGH_ACCOUNT_KEYS)
        self._remaining -= 1
        return self.next_account_unchecked()

    def next_account_unchecked(self) -> MaybeAccount:
        """Read the next account without counting it against the remaining ones."""
        account, self._offset = _read_account(self._input, self._offset)
        return account

    def available(self) -> int:
        """Number of accounts in the input."""
        return _read_u64(self._input, 0)

    def remaining(self) -> int:
        """Number of accounts not yet read with next_account."""
        return self._remaining

    def instruction_data(self) -> tuple[bytes, bytes]:
        """(instruction data, program id); only once every account has been read."""
        if self._remaining > 0:
            raise ProgramError(ErrorKind.INVALID_INSTRUCTION_DATA)
        return self.instruction_data_unchecked()

    def instruction_data_unchecked(self) -> tuple[bytes, bytes]:
        """(instruction data, program id) read at the current position."""
        return _read_instruction(self._input, self._offset)


def lazy_entrypoint(
    process_instruction: Callable[[InstructionContext], None],
) -> Callable[[bytearray], int]:
    """Wrap a processor taking an InstructionContext into a buffer-to-code function."""

    @functools.wraps(process_instruction)
    def run(input) -> int:
        try:
            process_instruction(InstructionContext(input))
        except ProgramError as error:
            return error.to_code()
        return SUCCESS

    return run
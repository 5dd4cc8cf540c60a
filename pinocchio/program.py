"""Cross-program invocation helpers and return data."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextvars import ContextVar
from dataclasses import dataclass

from pinocchio.account_info import AccountInfo
from pinocchio.instruction import Account, Instruction, Signer
from pinocchio.program_error import ErrorKind, ProgramError
from pinocchio.pubkey import PUBKEY_BYTES

#: Maximum size that can be set with set_return_data.
MAX_RETURN_DATA = 1024

_DEFAULT_PROGRAM_ID = bytes(PUBKEY_BYTES)


@dataclass(frozen=True)
class ReturnData:
    """Return data and the program that most recently set it."""

    program_id: bytes
    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "program_id", bytes(self.program_id))
        object.__setattr__(self, "data", bytes(self.data)[:MAX_RETURN_DATA])

    @property
    def size(self) -> int:
        """Length of the return data."""
        return len(self.data)

    def as_slice(self) -> bytes:
        """The data set by the program."""
        return self.data

    def __bytes__(self) -> bytes:
        return self.data

    def __len__(self) -> int:
        return len(self.data)

    def __iter__(self) -> Iterator[int]:
        return iter(self.data)

    def __getitem__(self, index):
        return self.data[index]


_RETURN_DATA: ContextVar[ReturnData | None] = ContextVar(
    "pinocchio_return_data", default=None
)


def invoke(instruction: Instruction, account_infos: Sequence[AccountInfo]) -> None:
    """Invoke a cross-program instruction.

    The accounts must be in the same order as the instruction's account metas.
    """
    invoke_signed(instruction, account_infos, ())


def invoke_signed(
    instruction: Instruction,
    account_infos: Sequence[AccountInfo],
    signers_seeds: Sequence[Signer],
) -> None:
    """Invoke a cross-program instruction with PDA signatures.

    Each account must match its meta's key and be borrowable the way the meta
    asks for: exclusively when writable, shared otherwise.
    """
    if len(instruction.accounts) < len(account_infos):
        raise ProgramError(ErrorKind.NOT_ENOUGH_ACCOUNT_KEYS)

    accounts = []
    for account_info, meta in zip(account_infos, instruction.accounts):
        if account_info.key() != meta.pubkey:
            raise ProgramError(ErrorKind.INVALID_ARGUMENT)
        if meta.is_writable:
            with account_info.try_borrow_mut_data():
                pass
            with account_info.try_borrow_mut_lamports():
                pass
        else:
            with account_info.try_borrow_data():
                pass
            with account_info.try_borrow_lamports():
                pass
        accounts.append(Account.from_account_info(account_info))

    invoke_signed_unchecked(instruction, accounts, signers_seeds)


def invoke_unchecked(instruction: Instruction, accounts: Sequence[Account]) -> None:
    """Invoke a cross-program instruction without borrow checks."""
    invoke_signed_unchecked(instruction, accounts, ())


def invoke_signed_unchecked(
    instruction: Instruction,
    accounts: Sequence[Account],
    signers_seeds: Sequence[Signer],
) -> None:
    """Invoke with PDA signatures and without borrow checks.

    Off-chain there is no callee to run; as the runtime does before every
    invocation, the return data is cleared.
    """
    if not isinstance(instruction, Instruction):
        raise TypeError("instruction must be an Instruction")
    for account in accounts:
        if not isinstance(account, Account):
            raise TypeError("accounts must be Account values")
    for entry in signers_seeds:
        if not isinstance(entry, Signer):
            raise TypeError("signers_seeds must be Signer values")
    _RETURN_DATA.set(None)


def set_return_data(data) -> None:
    """Set the running program's return data (at most MAX_RETURN_DATA bytes).

    Off-chain there is no running program id, so the default all-zero id is used.
    """
    payload = bytes(data)
    if len(payload) > MAX_RETURN_DATA:
        raise ValueError(
            f"return data is {len(payload)} bytes, at most {MAX_RETURN_DATA} allowed"
        )
    _RETURN_DATA.set(ReturnData(_DEFAULT_PROGRAM_ID, payload))


def get_return_data() -> ReturnData | None:
    """The current return data, or None when none (or nothing) was set."""
    current = _RETURN_DATA.get()
    if current is None or current.size == 0:
        return None
    return current
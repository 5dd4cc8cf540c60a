"""Instruction types for cross-program invocation."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from pinocchio.account_info import ACCOUNT_HEADER_LEN, AccountInfo
from pinocchio.pubkey import PUBKEY_BYTES


def _pubkey(value) -> bytes:
    key = bytes(value)
    if len(key) != PUBKEY_BYTES:
        raise ValueError(f"a pubkey is {PUBKEY_BYTES} bytes, got {len(key)}")
    return key


@dataclass(frozen=True)
class AccountMeta:
    """An account read or written by an instruction, with its access flags."""

    pubkey: bytes
    is_writable: bool = False
    is_signer: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "pubkey", _pubkey(self.pubkey))
        object.__setattr__(self, "is_writable", bool(self.is_writable))
        object.__setattr__(self, "is_signer", bool(self.is_signer))

    @classmethod
    def readonly(cls, pubkey) -> AccountMeta:
        """A read-only, non-signing account."""
        return cls(pubkey, False, False)

    @classmethod
    def writable(cls, pubkey) -> AccountMeta:
        """A writable, non-signing account."""
        return cls(pubkey, True, False)

    @classmethod
    def readonly_signer(cls, pubkey) -> AccountMeta:
        """A read-only signing account."""
        return cls(pubkey, False, True)

    @classmethod
    def writable_signer(cls, pubkey) -> AccountMeta:
        """A writable signing account."""
        return cls(pubkey, True, True)

    @classmethod
    def from_account_info(cls, account: AccountInfo) -> AccountMeta:
        """The meta describing an account with its current flags."""
        return cls(account.key(), account.is_writable(), account.is_signer())


@dataclass(frozen=True)
class Instruction:
    """A cross-program instruction: program id, data and account metas."""

    program_id: bytes
    data: bytes = b""
    accounts: tuple[AccountMeta, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "program_id", _pubkey(self.program_id))
        object.__setattr__(self, "data", bytes(self.data))
        object.__setattr__(self, "accounts", tuple(self.accounts))


@dataclass(frozen=True)
class ProcessedSiblingInstruction:
    """Sizes of a sibling instruction's data and account list."""

    data_len: int = 0
    accounts_len: int = 0


@dataclass(frozen=True)
class Account:
    """An account as handed to an invoked program.

    Key, owner, lamports and data are read live from the underlying account;
    the data length and flags are fixed when the value is built.
    """

    account_info: AccountInfo = field(repr=False)
    data_len: int
    rent_epoch: int = 0
    is_signer: bool = False
    is_writable: bool = False
    executable: bool = False

    @classmethod
    def from_account_info(cls, account: AccountInfo) -> Account:
        """Capture an account for an invocation."""
        return cls(
            account_info=account,
            data_len=account.data_len(),
            rent_epoch=0,
            is_signer=account.is_signer(),
            is_writable=account.is_writable(),
            executable=account.executable(),
        )

    @property
    def key(self) -> bytes:
        """Public key of the account."""
        return self.account_info.key()

    @property
    def owner(self) -> bytes:
        """Program that owns the account."""
        return self.account_info.owner()

    @property
    def lamports(self) -> int:
        """Lamports held by the account."""
        return self.account_info.lamports()

    @property
    def data(self) -> memoryview:
        """View of the account data, ``data_len`` bytes long."""
        start = self.account_info.offset + ACCOUNT_HEADER_LEN
        return memoryview(self.account_info.buffer)[start:start + self.data_len]


@dataclass(frozen=True)
class Seed:
    """Bytes of one seed for a program derived address."""

    value: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", bytes(self.value))

    def __bytes__(self) -> bytes:
        return self.value

    def __len__(self) -> int:
        return len(self.value)

    def __iter__(self) -> Iterator[int]:
        return iter(self.value)

    def __getitem__(self, index):
        return self.value[index]


@dataclass(frozen=True)
class Signer:
    """The seeds of a program derived address the calling program signs for."""

    seeds: tuple[Seed, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "seeds", tuple(_as_seed(s) for s in self.seeds))

    def __len__(self) -> int:
        return len(self.seeds)

    def __iter__(self) -> Iterator[Seed]:
        return iter(self.seeds)

    def __getitem__(self, index):
        return self.seeds[index]


def _as_seed(value) -> Seed:
    if isinstance(value, Seed):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return Seed(bytes(value))
    if isinstance(value, Iterable) and not isinstance(value, str):
        return Seed(bytes(value))
    raise TypeError(f"cannot make a seed from {type(value).__name__}")


def signer(*args) -> Signer:
    """Build a Signer from seeds given as bytes or sequences of byte values."""
    return Signer(tuple(_as_seed(arg) for arg in args))


__all__: Sequence[str] = (
    "Account",
    "AccountMeta",
    "Instruction",
    "ProcessedSiblingInstruction",
    "Seed",
    "Signer",
    "signer",
)
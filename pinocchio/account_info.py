"""Account information laid out as the runtime serializes it, with checked borrows."""

from __future__ import annotations

import struct
from collections.abc import Sequence

from pinocchio.borrow import (
    DATA_MASK,
    DATA_SHIFT,
    LAMPORTS_MASK,
    LAMPORTS_SHIFT,
    BorrowState,
    Ref,
    RefMut,
)
from pinocchio.program_error import ErrorKind, ProgramError

#: Maximum number of bytes a program may add to an account during a single realloc.
MAX_PERMITTED_DATA_INCREASE = 1_024 * 10

#: Flag marking that the original data length has been recorded.
SET_LEN_MASK = 1 << 31

#: Mask retrieving the original data length from its stored form.
GET_LEN_MASK = ~SET_LEN_MASK & 0xFFFF_FFFF

_HEADER = struct.Struct("<BBBBI32s32sQQ")

#: Size of the serialized account header that precedes the account data.
ACCOUNT_HEADER_LEN = _HEADER.size

_BORROW_STATE = 0
_IS_SIGNER = 1
_IS_WRITABLE = 2
_EXECUTABLE = 3
_ORIGINAL_DATA_LEN = 4
_KEY = 8
_OWNER = 40
_LAMPORTS = 72
_DATA_LEN = 80

_PUBKEY_LEN = 32
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_U64_MAX = 0xFFFF_FFFF_FFFF_FFFF


def _pubkey(value) -> bytes:
    key = bytes(value)
    if len(key) != _PUBKEY_LEN:
        raise ValueError(f"a pubkey is {_PUBKEY_LEN} bytes, got {len(key)}")
    return key


def _borrow_failed() -> ProgramError:
    return ProgramError(ErrorKind.ACCOUNT_BORROW_FAILED)


class _LamportsRef(Ref):
    """Shared borrow of the lamports field, read straight from the buffer."""

    @property
    def value(self) -> int:
        self._check()
        return _U64.unpack(self._value)[0]

    def map(self, f):
        return super().map(lambda _view: f(self.value))

    def filter_map(self, f):
        return super().filter_map(lambda _view: f(self.value))


class _LamportsRefMut(RefMut):
    """Exclusive borrow of the lamports field; assignments write through."""

    @property
    def value(self) -> int:
        self._check()
        return _U64.unpack(self._value)[0]

    @value.setter
    def value(self, new: int) -> None:
        self._check()
        if not 0 <= new <= _U64_MAX:
            raise ValueError(f"lamports out of u64 range: {new}")
        _U64.pack_into(self._value, 0, new)

    def map(self, f):
        return super().map(lambda _view: f(self.value))

    def filter_map(self, f):
        return super().filter_map(lambda _view: f(self.value))


def get_account_info(accounts: Sequence, index: int):
    """Return ``accounts[index]``, failing with NotEnoughAccountKeys if it is missing."""
    if len(accounts) <= index:
        raise ProgramError(ErrorKind.NOT_ENOUGH_ACCOUNT_KEYS)
    return accounts[index]


class AccountInfo:
    """View of one serialized account inside a shared mutable buffer.

    Several views may point at the same account (duplicates); they then share
    the borrow state byte and see each other's changes.
    """

    __slots__ = ("_buffer", "_offset")

    def __init__(self, buffer, offset: int = 0) -> None:
        if offset < 0 or offset + ACCOUNT_HEADER_LEN > len(buffer):
            raise ValueError(f"no account header at offset {offset}")
        self._buffer = buffer
        self._offset = offset
        if self._data_start + self.data_len() > len(buffer):
            raise ValueError("account data extends past the end of the buffer")

    @classmethod
    def create(
        cls,
        key,
        owner,
        lamports: int,
        data: bytes,
        is_signer: bool = False,
        is_writable: bool = False,
        executable: bool = False,
    ) -> AccountInfo:
        """Build a standalone account with room to grow by the permitted increase."""
        payload = bytes(data)
        if not 0 <= lamports <= _U64_MAX:
            raise ValueError(f"lamports out of u64 range: {lamports}")
        buffer = bytearray(
            ACCOUNT_HEADER_LEN + len(payload) + MAX_PERMITTED_DATA_INCREASE
        )
        _HEADER.pack_into(
            buffer,
            0,
            0,
            int(bool(is_signer)),
            int(bool(is_writable)),
            int(bool(executable)),
            0,
            _pubkey(key),
            _pubkey(owner),
            lamports,
            len(payload),
        )
        buffer[ACCOUNT_HEADER_LEN:ACCOUNT_HEADER_LEN + len(payload)] = payload
        return cls(buffer, 0)

    @property
    def buffer(self):
        """The buffer holding the serialized account."""
        return self._buffer

    @property
    def offset(self) -> int:
        """Where the account header starts in the buffer."""
        return self._offset

    @property
    def _data_start(self) -> int:
        return self._offset + ACCOUNT_HEADER_LEN

    def _read(self, layout: struct.Struct, field: int) -> int:
        return layout.unpack_from(self._buffer, self._offset + field)[0]

    def _write(self, layout: struct.Struct, field: int, value: int) -> None:
        layout.pack_into(self._buffer, self._offset + field, value)

    def _state(self) -> BorrowState:
        return BorrowState(self._buffer, self._offset + _BORROW_STATE)

    def _view(self, start: int, length: int) -> memoryview:
        begin = self._offset + start
        return memoryview(self._buffer)[begin:begin + length]

    def key(self) -> bytes:
        """Public key of the account."""
        return bytes(self._view(_KEY, _PUBKEY_LEN))

    def owner(self) -> bytes:
        """Program that owns this account."""
        return bytes(self._view(_OWNER, _PUBKEY_LEN))

    def is_signer(self) -> bool:
        """Whether the transaction was signed by this account."""
        return self._buffer[self._offset + _IS_SIGNER] != 0

    def is_writable(self) -> bool:
        """Whether the account is writable."""
        return self._buffer[self._offset + _IS_WRITABLE] != 0

    def executable(self) -> bool:
        """Whether this account holds a program (always read-only)."""
        return self._buffer[self._offset + _EXECUTABLE] != 0

    def data_len(self) -> int:
        """Size of the account data."""
        return self._read(_U64, _DATA_LEN)

    def lamports(self) -> int:
        """Lamports held by the account."""
        return self._read(_U64, _LAMPORTS)

    def data_is_empty(self) -> bool:
        """Whether the account data has length zero."""
        return self.data_len() == 0

    def assign(self, new_owner) -> None:
        """Change the owner of the account."""
        start = self._offset + _OWNER
        self._buffer[start:start + _PUBKEY_LEN] = _pubkey(new_owner)

    def borrow_data_unchecked(self) -> memoryview:
        """Read-only view of the data, ignoring the borrow state."""
        return self._view(ACCOUNT_HEADER_LEN, self.data_len()).toreadonly()

    def borrow_mut_data_unchecked(self) -> memoryview:
        """Writable view of the data, ignoring the borrow state."""
        return self._view(ACCOUNT_HEADER_LEN, self.data_len())

    def try_borrow_lamports(self) -> Ref:
        """Shared borrow of the lamports; fails if mutably borrowed or 7 borrows exist."""
        state = self._state()
        current = state.value
        if current & 0b1000_0000:
            raise _borrow_failed()
        if current & 0b0111_0000 == 0b0111_0000:
            raise _borrow_failed()
        state.value = current + (1 << LAMPORTS_SHIFT)
        return _LamportsRef(self._view(_LAMPORTS, 8), state, LAMPORTS_SHIFT)

    def try_borrow_mut_lamports(self) -> RefMut:
        """Exclusive borrow of the lamports; fails if borrowed in any form."""
        state = self._state()
        current = state.value
        if current & 0b1111_0000:
            raise _borrow_failed()
        state.value = current | 0b1000_0000
        return _LamportsRefMut(self._view(_LAMPORTS, 8), state, LAMPORTS_MASK)

    def try_borrow_data(self) -> Ref:
        """Shared borrow of the data; fails if mutably borrowed or 7 borrows exist."""
        state = self._state()
        current = state.value
        if current & 0b0000_1000:
            raise _borrow_failed()
        if current & 0b0000_0111 == 0b0000_0111:
            raise _borrow_failed()
        state.value = current + (1 << DATA_SHIFT)
        return Ref(self.borrow_data_unchecked(), state, DATA_SHIFT)

    def try_borrow_mut_data(self) -> RefMut:
        """Exclusive borrow of the data; fails if borrowed in any form."""
        state = self._state()
        current = state.value
        if current & 0b0000_1111:
            raise _borrow_failed()
        state.value = current | 0b0000_1000
        return RefMut(self.borrow_mut_data_unchecked(), state, DATA_MASK)

    def realloc(self, new_len: int, zero_init: bool) -> None:
        """Resize the account data, optionally zeroing newly exposed bytes.

        The data may grow by at most MAX_PERMITTED_DATA_INCREASE bytes beyond
        its length at the first realloc.
        """
        if new_len < 0:
            raise ValueError(f"negative data length: {new_len}")
        with self.try_borrow_mut_data():
            current_len = self.data_len()
            if new_len == current_len:
                return
            stored = self._read(_U32, _ORIGINAL_DATA_LEN)
            if stored & SET_LEN_MASK == SET_LEN_MASK:
                original_len = stored & GET_LEN_MASK
            else:
                self._write(
                    _U32,
                    _ORIGINAL_DATA_LEN,
                    (current_len & 0xFFFF_FFFF) | SET_LEN_MASK,
                )
                original_len = current_len
            if max(new_len - original_len, 0) > MAX_PERMITTED_DATA_INCREASE:
                raise ProgramError(ErrorKind.INVALID_REALLOC)
            if self._data_start + new_len > len(self._buffer):
                raise ProgramError(ErrorKind.INVALID_REALLOC)
            self._write(_U64, _DATA_LEN, new_len)
            if zero_init and new_len > current_len:
                start = self._data_start
                self._buffer[start + current_len:start + new_len] = bytes(
                    new_len - current_len
                )

    def close(self) -> None:
        """Zero the owner, lamports and data length; fails if the data is borrowed."""
        with self.try_borrow_mut_data():
            pass
        self.close_unchecked()

    def close_unchecked(self) -> None:
        """Zero the owner, lamports and data length without checking borrows."""
        start = self._offset + _OWNER
        self._buffer[start:start + _PUBKEY_LEN] = bytes(_PUBKEY_LEN)
        self._write(_U64, _LAMPORTS, 0)
        self._write(_U64, _DATA_LEN, 0)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AccountInfo):
            return NotImplemented
        return self._buffer is other._buffer and self._offset == other._offset

    def __hash__(self) -> int:
        return hash((id(self._buffer), self._offset))

    def __repr__(self) -> str:
        return (
            f"AccountInfo(key={self.key().hex()}, lamports={self.lamports()}, "
            f"data_len={self.data_len()})"
        )
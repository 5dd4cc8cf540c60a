"""Checked borrows of account lamports and data, tracked in a shared state byte."""

from __future__ import annotations

from typing import Any, Callable

#: Bits to shift to reach the lamports borrow state.
LAMPORTS_SHIFT = 4

#: Bits to shift to reach the data borrow state.
DATA_SHIFT = 0

#: Mask clearing the mutable lamports borrow flag.
LAMPORTS_MASK = 0b0111_1111

#: Mask clearing the mutable data borrow flag.
DATA_MASK = 0b1111_0111


class BorrowState:
    """A single borrow-state byte living inside a mutable buffer."""

    __slots__ = ("_buffer", "_offset")

    def __init__(self, buffer, offset: int = 0) -> None:
        if not 0 <= offset < len(buffer):
            raise IndexError(f"borrow state offset {offset} outside buffer")
        self._buffer = buffer
        self._offset = offset

    @property
    def value(self) -> int:
        """The current state byte."""
        return self._buffer[self._offset]

    @value.setter
    def value(self, new: int) -> None:
        self._buffer[self._offset] = new & 0xFF

    def __int__(self) -> int:
        return self.value

    def __repr__(self) -> str:
        return f"BorrowState({self.value:#010b})"


class _Borrow:
    """Shared behaviour of borrow guards: release once, hand over on map."""

    def __init__(self, value: Any, state: BorrowState) -> None:
        self._value = value
        self._state = state
        self._live = True

    def _derive(self, value: Any) -> _Borrow:
        raise NotImplementedError

    def _restore(self) -> None:
        raise NotImplementedError

    def _check(self) -> None:
        if not self._live:
            raise RuntimeError("borrow has already been released or moved")

    @property
    def released(self) -> bool:
        """Whether this guard no longer holds its borrow."""
        return not self._live

    @property
    def value(self) -> Any:
        """The borrowed value."""
        self._check()
        return self._value

    def map(self, f: Callable[[Any], Any]):
        """Move the borrow onto ``f(value)``; this guard no longer holds it."""
        self._check()
        new = self._derive(f(self._value))
        self._live = False
        return new

    def filter_map(self, f: Callable[[Any], Any]):
        """Like map, but if ``f`` gives None return None and keep this guard."""
        self._check()
        result = f(self._value)
        if result is None:
            return None
        new = self._derive(result)
        self._live = False
        return new

    def release(self) -> None:
        """Give the borrow back; later calls do nothing."""
        if getattr(self, "_live", False):
            self._live = False
            self._restore()

    def __enter__(self):
        self._check()
        return self

    def __exit__(self, *args) -> None:
        self.release()

    def __del__(self) -> None:
        self.release()


class Ref(_Borrow):
    """A shared borrow; releasing it decrements its borrow count."""

    def __init__(self, value: Any, state: BorrowState, borrow_shift: int) -> None:
        super().__init__(value, state)
        self._borrow_shift = borrow_shift

    def _derive(self, value: Any) -> Ref:
        return Ref(value, self._state, self._borrow_shift)

    def _restore(self) -> None:
        self._state.value = self._state.value - (1 << self._borrow_shift)

    def map(self, f: Callable[[Any], Any]) -> Ref:
        """Move the borrow onto ``f(value)``; this guard no longer holds it."""
        return super().map(f)

    def filter_map(self, f: Callable[[Any], Any]) -> Ref | None:
        """Like map, but if ``f`` gives None return None and keep this guard."""
        return super().filter_map(f)

    def release(self) -> None:
        """Decrement the shared borrow count, once."""
        super().release()

    def __enter__(self) -> Ref:
        return super().__enter__()

    def __exit__(self, *args) -> None:
        self.release()


class RefMut(_Borrow):
    """An exclusive borrow; releasing it clears its mutable flag."""

    def __init__(self, value: Any, state: BorrowState, borrow_mask: int) -> None:
        super().__init__(value, state)
        self._borrow_mask = borrow_mask

    def _derive(self, value: Any) -> RefMut:
        return RefMut(value, self._state, self._borrow_mask)

    def _restore(self) -> None:
        self._state.value = self._state.value & self._borrow_mask

    @property
    def value(self) -> Any:
        """The borrowed value; assigning writes through a memoryview in place."""
        self._check()
        return self._value

    @value.setter
    def value(self, new: Any) -> None:
        self._check()
        if isinstance(self._value, memoryview):
            self._value[:] = new
        else:
            self._value = new

    def map(self, f: Callable[[Any], Any]) -> RefMut:
        """Move the borrow onto ``f(value)``; this guard no longer holds it."""
        return super().map(f)

    def filter_map(self, f: Callable[[Any], Any]) -> RefMut | None:
        """Like map, but if ``f`` gives None return None and keep this guard."""
        return super().filter_map(f)

    def release(self) -> None:
        """Clear the mutable borrow flag, once."""
        super().release()

    def __enter__(self) -> RefMut:
        return super().__enter__()

    def __exit__(self, *args) -> None:
        self.release()
import pytest

from pinocchio.borrow import (
    DATA_MASK,
    DATA_SHIFT,
    LAMPORTS_MASK,
    LAMPORTS_SHIFT,
    BorrowState,
    Ref,
    RefMut,
)


def _state(initial):
    return BorrowState(bytearray([initial]), 0)


def test_data_ref():
    data = bytearray([0, 1, 2, 3])
    state = _state(1 << DATA_SHIFT)
    ref_data = Ref(memoryview(data), state, DATA_SHIFT)

    new_ref = ref_data.map(lambda d: d[1])
    assert state.value == 1 << DATA_SHIFT
    assert new_ref.value == 1

    new_ref = new_ref.filter_map(lambda _: 3)
    assert new_ref is not None
    assert state.value == 1 << DATA_SHIFT
    assert new_ref.value == 3

    missing = new_ref.filter_map(lambda _: None)
    assert state.value == 1 << DATA_SHIFT
    assert missing is None

    new_ref.release()
    assert state.value == 0 << DATA_SHIFT


def test_lamports_ref():
    state = _state(1 << LAMPORTS_SHIFT)
    ref_lamports = Ref(10000, state, LAMPORTS_SHIFT)

    new_ref = ref_lamports.map(lambda _: 1000)
    assert state.value == 1 << LAMPORTS_SHIFT
    assert new_ref.value == 1000

    new_ref = new_ref.filter_map(lambda _: 2000)
    assert state.value == 1 << LAMPORTS_SHIFT
    assert new_ref.value == 2000

    missing = new_ref.filter_map(lambda _: None)
    assert state.value == 1 << LAMPORTS_SHIFT
    assert missing is None

    new_ref.release()
    assert state.value == 0 << LAMPORTS_SHIFT


def test_data_ref_mut():
    data = bytearray([0, 1, 2, 3])
    state = _state(0b0000_1000)
    ref_data = RefMut(memoryview(data), state, DATA_MASK)

    new_ref = ref_data.filter_map(lambda d: d[0:1] if len(d) > 0 else None)
    assert new_ref is not None

    new_ref.value[0] = 4
    assert state.value == 8
    assert new_ref.value[0] == 4

    new_ref.release()
    assert list(data) == [4, 1, 2, 3]
    assert state.value == 0


def test_lamports_ref_mut():
    lamports = bytearray((10000).to_bytes(8, "little"))
    state = _state(0b1000_0000)
    ref_lamports = RefMut(memoryview(lamports), state, LAMPORTS_MASK)

    def set_200(cell):
        cell[:] = (200).to_bytes(8, "little")
        return cell

    new_ref = ref_lamports.map(set_200)
    assert state.value == 128
    assert int.from_bytes(new_ref.value, "little") == 200

    new_ref.release()
    assert int.from_bytes(lamports, "little") == 200
    assert state.value == 0


def test_moved_ref_cannot_be_used():
    state = _state(1)
    original = Ref(b"abc", state, DATA_SHIFT)
    moved = original.map(lambda v: v[:1])
    assert original.released is True
    with pytest.raises(RuntimeError):
        _ = original.value
    assert moved.value == b"a"


def test_release_is_idempotent():
    state = _state(2)
    ref = Ref(b"x", state, DATA_SHIFT)
    ref.release()
    ref.release()
    assert state.value == 1


def test_context_manager_releases():
    state = _state(0b0001_0000)
    with Ref(5, state, LAMPORTS_SHIFT) as guard:
        assert guard.value == 5
        assert state.value == 0b0001_0000
    assert state.value == 0


def test_ref_mut_context_manager_clears_flag():
    data = bytearray(4)
    state = _state(0b1000_1000)
    with RefMut(memoryview(data), state, DATA_MASK) as guard:
        guard.value = b"\x01\x02\x03\x04"
    assert bytes(data) == b"\x01\x02\x03\x04"
    assert state.value == 0b1000_0000


def test_dropping_guard_releases():
    state = _state(0b1000_0000)
    guard = RefMut(1, state, LAMPORTS_MASK)
    del guard
    assert state.value == 0


def test_failed_filter_map_keeps_borrow():
    state = _state(0b0000_1000)
    guard = RefMut(memoryview(bytearray(2)), state, DATA_MASK)
    assert guard.filter_map(lambda _: None) is None
    assert guard.released is False
    assert state.value == 0b0000_1000
    guard.release()
    assert state.value == 0


def test_borrow_state_in_larger_buffer():
    buffer = bytearray([9, 0, 7])
    state = BorrowState(buffer, 1)
    state.value = 0x1FF
    assert buffer == bytearray([9, 0xFF, 7])
    assert int(state) == 0xFF


def test_borrow_state_offset_out_of_range():
    with pytest.raises(IndexError):
        BorrowState(bytearray(2), 2)
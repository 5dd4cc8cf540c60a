import struct

import pytest

from pinocchio.lazy_entrypoint import (
    InstructionContext,
    MaybeAccount,
    lazy_entrypoint,
)
from pinocchio.program_error import (
    NOT_ENOUGH_ACCOUNT_KEYS,
    SUCCESS,
    ErrorKind,
    ProgramError,
)

HEADER = struct.Struct("<BBBBI32s32sQQ")
INCREASE = 10 * 1024
PROGRAM_ID = bytes(range(32, 64))


def serialize(accounts, data=b"", program_id=PROGRAM_ID):
    """accounts: (key_byte, lamports, data) tuples or duplicate indexes."""
    buf = bytearray(struct.pack("<Q", len(accounts)))
    for account in accounts:
        if isinstance(account, int):
            buf += bytes([account]) + bytes(7)
            continue
        key_byte, lamports, payload = account
        buf += HEADER.pack(
            0xFF, 1, 1, 0, 0, bytes([key_byte]) * 32, bytes(32), lamports, len(payload)
        )
        buf += payload + bytes(INCREASE)
        buf += bytes(-len(buf) % 8)
        buf += bytes(8)
    buf += struct.pack("<Q", len(data)) + data + program_id
    return buf


def test_counts():
    ctx = InstructionContext(serialize([(1, 0, b""), (2, 0, b"")]))
    assert ctx.available() == 2
    assert ctx.remaining() == 2
    ctx.next_account()
    assert ctx.remaining() == 1
    assert ctx.available() == 2


def test_reads_accounts_and_duplicates():
    buf = serialize([(1, 99, b"abc"), 0, (2, 5, b"")], data=b"data")
    ctx = InstructionContext(buf)
    first = ctx.next_account()
    assert not first.is_duplicate
    account = first.assume_account()
    assert account.key() == bytes([1]) * 32
    assert account.lamports() == 99
    assert bytes(account.borrow_data_unchecked()) == b"abc"
    assert buf[8] == 0

    second = ctx.next_account()
    assert second.is_duplicate
    assert second.duplicate_of == 0
    with pytest.raises(RuntimeError):
        second.assume_account()

    third = ctx.next_account().assume_account()
    assert third.key() == bytes([2]) * 32
    assert ctx.instruction_data() == (b"data", PROGRAM_ID)


def test_next_account_fails_when_exhausted():
    ctx = InstructionContext(serialize([(1, 0, b"")]))
    ctx.next_account()
    with pytest.raises(ProgramError) as exc:
        ctx.next_account()
    assert exc.value.kind is ErrorKind.NOT_ENOUGH_ACCOUNT_KEYS


def test_instruction_data_requires_all_accounts_read():
    ctx = InstructionContext(serialize([(1, 0, b"x")], data=b"ix"))
    with pytest.raises(ProgramError) as exc:
        ctx.instruction_data()
    assert exc.value.kind is ErrorKind.INVALID_INSTRUCTION_DATA
    ctx.next_account()
    assert ctx.instruction_data() == (b"ix", PROGRAM_ID)


def test_unchecked_reads_do_not_decrement():
    ctx = InstructionContext(serialize([(7, 0, b"12345")], data=b"q"))
    account = ctx.next_account_unchecked().assume_account()
    assert account.key() == bytes([7]) * 32
    assert ctx.remaining() == 1
    assert ctx.instruction_data_unchecked() == (b"q", PROGRAM_ID)


def test_no_accounts_instruction_data():
    ctx = InstructionContext(serialize([], data=b"hello"))
    assert ctx.remaining() == 0
    assert ctx.instruction_data() == (b"hello", PROGRAM_ID)


def test_maybe_account_requires_exactly_one_variant():
    with pytest.raises(ValueError):
        MaybeAccount()


def test_lazy_entrypoint_codes():
    seen = []

    def process(ctx):
        account = ctx.next_account().assume_account()
        seen.append(account.key())
        seen.append(ctx.instruction_data())

    run = lazy_entrypoint(process)
    assert run(serialize([(3, 0, b"")], data=b"go")) == SUCCESS
    assert seen == [bytes([3]) * 32, (b"go", PROGRAM_ID)]

    def greedy(ctx):
        ctx.next_account()

    assert lazy_entrypoint(greedy)(serialize([])) == NOT_ENOUGH_ACCOUNT_KEYS
# pinocchio

A small library that models how an on-chain program sees its world: the
serialized input buffer, account views with checked borrows, instructions for
cross-program invocation, program errors and program derived addresses.
Accounts are read in place from a `bytearray`, so changes made through an
`AccountInfo` land directly in the buffer.

It has no dependencies outside the standard library.

## Install

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## What is inside

- `pinocchio.program_error`: `ProgramError` (an exception) and `ErrorKind`.
  `ProgramError.from_code(code)` turns a 64-bit runtime code into an error,
  `ProgramError.custom(code)` builds a program-specific error, and
  `to_code()` gives the code back. The module also holds the code constants
  (`INVALID_ARGUMENT`, `ACCOUNT_BORROW_FAILED`, ...) and `SUCCESS`,
  `MAX_TX_ACCOUNTS` and `NON_DUP_MARKER`.
- `pinocchio.borrow`: `BorrowState`, `Ref` and `RefMut`, the borrow guards.
  Use them as context managers or call `release()`; `map` and `filter_map`
  move a borrow onto a derived value.
- `pinocchio.account_info`: `AccountInfo`, a view of one serialized account,
  with `key`, `owner`, `lamports`, `data_len`, `is_signer`, `is_writable`,
  `executable`, `try_borrow_data`, `try_borrow_mut_data`,
  `try_borrow_lamports`, `try_borrow_mut_lamports`, `realloc`, `assign`,
  `close` and `close_unchecked`. `AccountInfo.create(...)` builds a
  standalone account. `get_account_info(accounts, index)` raises
  `NOT_ENOUGH_ACCOUNT_KEYS` when the index is out of range.
- `pinocchio.entrypoint`: `deserialize(input, max_accounts)` parses an input
  buffer into `(program_id, accounts, instruction_data)`;
  `entrypoint(process_instruction, maximum)` wraps a processor into a
  function from buffer to result code; `BumpAllocator` hands out addresses
  downwards and never frees.
- `pinocchio.lazy_entrypoint`: `InstructionContext` (`next_account`,
  `next_account_unchecked`, `available`, `remaining`, `instruction_data`,
  `instruction_data_unchecked`), `MaybeAccount` and
  `lazy_entrypoint(process_instruction)`.
- `pinocchio.instruction`: `Instruction`, `AccountMeta` (with `readonly`,
  `writable`, `readonly_signer`, `writable_signer`, `from_account_info`),
  `Account`, `Seed`, `Signer`, `ProcessedSiblingInstruction` and
  `signer(*seeds)`.
- `pinocchio.program`: `invoke`, `invoke_signed`, `invoke_unchecked`,
  `invoke_signed_unchecked`, `set_return_data`, `get_return_data` and
  `ReturnData`.
- `pinocchio.pubkey`: base58 `from_str` and `to_str`, `is_on_curve`,
  `create_program_address`, `checked_create_program_address`,
  `try_find_program_address`, `find_program_address`, and `log`, which
  writes a pubkey to the `pinocchio` logger.
- `pinocchio.syscalls`: `murmur3_32`, `sys_hash` and the list of syscall
  names, `SYSCALL_NAMES`.

## Example

Borrowing account data:

```python
from pinocchio.account_info import AccountInfo
from pinocchio.program_error import ProgramError

account = AccountInfo.create(
    key=bytes(32),
    owner=bytes(32),
    lamports=1_000,
    data=b"\x01\x02\x03",
    is_signer=True,
    is_writable=True,
    executable=False,
)

with account.try_borrow_mut_data() as data:
    data.value[0] = 9

try:
    with account.try_borrow_mut_data():
        account.try_borrow_data()
except ProgramError as error:
    print(error.kind)  # ErrorKind.ACCOUNT_BORROW_FAILED
```

Wrapping an instruction processor:

```python
from pinocchio.entrypoint import entrypoint
from pinocchio.program_error import ErrorKind, ProgramError

def process_instruction(program_id, accounts, instruction_data):
    if not instruction_data:
        raise ProgramError(ErrorKind.INVALID_INSTRUCTION_DATA)

run = entrypoint(process_instruction)
# run(input_buffer) returns 0 on success, or the error's 64-bit code.
```

Deriving a program address:

```python
from pinocchio.pubkey import find_program_address

program_id = bytes(range(32))
address, bump = find_program_address([b"vault"], program_id)
```

## What it does not do

- Invoking another program runs nothing: `invoke` and `invoke_signed` check
  keys and borrows, then `invoke_signed_unchecked` only clears the return
  data. Return data set with `set_return_data` carries the all-zero program id.
- There is no access to cluster system accounts (clock, fees, rent) and no
  rent or fee calculation.
- There are no program logging helpers apart from `pubkey.log`, and no
  memory copy, move, compare or set helpers.
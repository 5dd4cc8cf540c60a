"""Errors a program can report, and their 64-bit runtime codes."""

from __future__ import annotations

from enum import Enum

#: Maximum number of accounts that a transaction may process.
MAX_TX_ACCOUNTS = 128

#: Alignment of a u128 on the BPF target.
BPF_ALIGN_OF_U128 = 8

#: Value marking a serialized account as not being a duplicate.
NON_DUP_MARKER = 0xFF

#: Return value for a successful program execution.
SUCCESS = 0

#: Builtin return values occupy the upper 32 bits.
BUILTIN_BIT_SHIFT = 32

_U32_MAX = 0xFFFF_FFFF
_U64_MAX = 0xFFFF_FFFF_FFFF_FFFF


class ErrorKind(Enum):
    """Reasons a program may fail; the value is the builtin error index."""

    CUSTOM = 1
    INVALID_ARGUMENT = 2
    INVALID_INSTRUCTION_DATA = 3
    INVALID_ACCOUNT_DATA = 4
    ACCOUNT_DATA_TOO_SMALL = 5
    INSUFFICIENT_FUNDS = 6
    INCORRECT_PROGRAM_ID = 7
    MISSING_REQUIRED_SIGNATURE = 8
    ACCOUNT_ALREADY_INITIALIZED = 9
    UNINITIALIZED_ACCOUNT = 10
    NOT_ENOUGH_ACCOUNT_KEYS = 11
    ACCOUNT_BORROW_FAILED = 12
    MAX_SEED_LENGTH_EXCEEDED = 13
    INVALID_SEEDS = 14
    BORSH_IO_ERROR = 15
    ACCOUNT_NOT_RENT_EXEMPT = 16
    UNSUPPORTED_SYSVAR = 17
    ILLEGAL_OWNER = 18
    MAX_ACCOUNTS_DATA_ALLOCATIONS_EXCEEDED = 19
    INVALID_REALLOC = 20
    MAX_INSTRUCTION_TRACE_LENGTH_EXCEEDED = 21
    BUILTIN_PROGRAMS_MUST_CONSUME_COMPUTE_UNITS = 22
    INVALID_ACCOUNT_OWNER = 23
    ARITHMETIC_OVERFLOW = 24
    IMMUTABLE = 25
    INCORRECT_AUTHORITY = 26

    @property
    def builtin_code(self) -> int:
        """The 64-bit code the runtime uses for this kind."""
        return self.value << BUILTIN_BIT_SHIFT


CUSTOM_ZERO = ErrorKind.CUSTOM.builtin_code
INVALID_ARGUMENT = ErrorKind.INVALID_ARGUMENT.builtin_code
INVALID_INSTRUCTION_DATA = ErrorKind.INVALID_INSTRUCTION_DATA.builtin_code
INVALID_ACCOUNT_DATA = ErrorKind.INVALID_ACCOUNT_DATA.builtin_code
ACCOUNT_DATA_TOO_SMALL = ErrorKind.ACCOUNT_DATA_TOO_SMALL.builtin_code
INSUFFICIENT_FUNDS = ErrorKind.INSUFFICIENT_FUNDS.builtin_code
INCORRECT_PROGRAM_ID = ErrorKind.INCORRECT_PROGRAM_ID.builtin_code
MISSING_REQUIRED_SIGNATURES = ErrorKind.MISSING_REQUIRED_SIGNATURE.builtin_code
ACCOUNT_ALREADY_INITIALIZED = ErrorKind.ACCOUNT_ALREADY_INITIALIZED.builtin_code
UNINITIALIZED_ACCOUNT = ErrorKind.UNINITIALIZED_ACCOUNT.builtin_code
NOT_ENOUGH_ACCOUNT_KEYS = ErrorKind.NOT_ENOUGH_ACCOUNT_KEYS.builtin_code
ACCOUNT_BORROW_FAILED = ErrorKind.ACCOUNT_BORROW_FAILED.builtin_code
MAX_SEED_LENGTH_EXCEEDED = ErrorKind.MAX_SEED_LENGTH_EXCEEDED.builtin_code
INVALID_SEEDS = ErrorKind.INVALID_SEEDS.builtin_code
BORSH_IO_ERROR = ErrorKind.BORSH_IO_ERROR.builtin_code
ACCOUNT_NOT_RENT_EXEMPT = ErrorKind.ACCOUNT_NOT_RENT_EXEMPT.builtin_code
UNSUPPORTED_SYSVAR = ErrorKind.UNSUPPORTED_SYSVAR.builtin_code
ILLEGAL_OWNER = ErrorKind.ILLEGAL_OWNER.builtin_code
MAX_ACCOUNTS_DATA_ALLOCATIONS_EXCEEDED = (
    ErrorKind.MAX_ACCOUNTS_DATA_ALLOCATIONS_EXCEEDED.builtin_code
)
INVALID_ACCOUNT_DATA_REALLOC = ErrorKind.INVALID_REALLOC.builtin_code
MAX_INSTRUCTION_TRACE_LENGTH_EXCEEDED = (
    ErrorKind.MAX_INSTRUCTION_TRACE_LENGTH_EXCEEDED.builtin_code
)
BUILTIN_PROGRAMS_MUST_CONSUME_COMPUTE_UNITS = (
    ErrorKind.BUILTIN_PROGRAMS_MUST_CONSUME_COMPUTE_UNITS.builtin_code
)
INVALID_ACCOUNT_OWNER = ErrorKind.INVALID_ACCOUNT_OWNER.builtin_code
ARITHMETIC_OVERFLOW = ErrorKind.ARITHMETIC_OVERFLOW.builtin_code
IMMUTABLE = ErrorKind.IMMUTABLE.builtin_code
INCORRECT_AUTHORITY = ErrorKind.INCORRECT_AUTHORITY.builtin_code

_KIND_BY_CODE = {
    kind.builtin_code: kind for kind in ErrorKind if kind is not ErrorKind.CUSTOM
}

_DESCRIPTIONS = {
    ErrorKind.INVALID_ARGUMENT: "The arguments provided to a program instruction were invalid",
    ErrorKind.INVALID_INSTRUCTION_DATA: "An instruction's data contents was invalid",
    ErrorKind.INVALID_ACCOUNT_DATA: "An account's data contents was invalid",
    ErrorKind.ACCOUNT_DATA_TOO_SMALL: "An account's data was too small",
    ErrorKind.INSUFFICIENT_FUNDS: (
        "An account's balance was too small to complete the instruction"
    ),
    ErrorKind.INCORRECT_PROGRAM_ID: "The account did not have the expected program id",
    ErrorKind.MISSING_REQUIRED_SIGNATURE: "A signature was required but not found",
    ErrorKind.ACCOUNT_ALREADY_INITIALIZED: (
        "An initialize instruction was sent to an account that has already been initialized"
    ),
    ErrorKind.UNINITIALIZED_ACCOUNT: (
        "An attempt to operate on an account that hasn't been initialized"
    ),
    ErrorKind.NOT_ENOUGH_ACCOUNT_KEYS: "The instruction expected additional account keys",
    ErrorKind.ACCOUNT_BORROW_FAILED: (
        "Failed to borrow a reference to account data, already borrowed"
    ),
    ErrorKind.MAX_SEED_LENGTH_EXCEEDED: (
        "Length of the seed is too long for address generation"
    ),
    ErrorKind.INVALID_SEEDS: "Provided seeds do not result in a valid address",
    ErrorKind.BORSH_IO_ERROR: "IO Error",
    ErrorKind.ACCOUNT_NOT_RENT_EXEMPT: (
        "An account does not have enough lamports to be rent-exempt"
    ),
    ErrorKind.UNSUPPORTED_SYSVAR: "Unsupported sysvar",
    ErrorKind.ILLEGAL_OWNER: "Provided owner is not allowed",
    ErrorKind.MAX_ACCOUNTS_DATA_ALLOCATIONS_EXCEEDED: (
        "Accounts data allocations exceeded the maximum allowed per transaction"
    ),
    ErrorKind.INVALID_REALLOC: "Account data reallocation was invalid",
    ErrorKind.MAX_INSTRUCTION_TRACE_LENGTH_EXCEEDED: (
        "Instruction trace length exceeded the maximum allowed per transaction"
    ),
    ErrorKind.BUILTIN_PROGRAMS_MUST_CONSUME_COMPUTE_UNITS: (
        "Builtin programs must consume compute units"
    ),
    ErrorKind.INVALID_ACCOUNT_OWNER: "Invalid account owner",
    ErrorKind.ARITHMETIC_OVERFLOW: "Program arithmetic overflowed",
    ErrorKind.IMMUTABLE: "Account is immutable",
    ErrorKind.INCORRECT_AUTHORITY: "Incorrect authority provided",
}


class ProgramError(Exception):
    """An error reported by a program, convertible to and from its runtime code."""

    def __init__(self, kind: ErrorKind, custom_code: int | None = None) -> None:
        if kind is ErrorKind.CUSTOM:
            if custom_code is None:
                custom_code = 0
            if not 0 <= custom_code <= _U32_MAX:
                raise ValueError(f"custom error code out of u32 range: {custom_code}")
        elif custom_code is not None:
            raise ValueError(f"{kind.name} does not take a custom code")
        self.kind = kind
        self.custom_code = custom_code
        super().__init__(self._describe())

    def _describe(self) -> str:
        if self.kind is ErrorKind.CUSTOM:
            return f"Custom program error: {self.custom_code:#x}"
        return _DESCRIPTIONS[self.kind]

    @classmethod
    def custom(cls, code: int) -> ProgramError:
        """A program-specific error carrying a u32 code."""
        return cls(ErrorKind.CUSTOM, code)

    @classmethod
    def from_code(cls, code: int) -> ProgramError:
        """Build the error that a 64-bit runtime code stands for."""
        if not 0 <= code <= _U64_MAX:
            raise ValueError(f"error code out of u64 range: {code}")
        if code == CUSTOM_ZERO:
            return cls.custom(0)
        kind = _KIND_BY_CODE.get(code)
        if kind is not None:
            return cls(kind)
        return cls.custom(code & _U32_MAX)

    def to_code(self) -> int:
        """The 64-bit code the runtime receives for this error."""
        if self.kind is ErrorKind.CUSTOM:
            return CUSTOM_ZERO if self.custom_code == 0 else self.custom_code
        return self.kind.builtin_code

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProgramError):
            return NotImplemented
        return self.kind is other.kind and self.custom_code == other.custom_code

    def __hash__(self) -> int:
        return hash((self.kind, self.custom_code))

    def __repr__(self) -> str:
        if self.kind is ErrorKind.CUSTOM:
            return f"ProgramError.custom({self.custom_code})"
        return f"ProgramError({self.kind})"
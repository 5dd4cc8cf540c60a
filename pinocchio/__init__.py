"""Program model for accounts, borrows, instructions, entrypoints, errors and derived addresses."""

__version__ = "0.1.0"
"""Fatal errors raised by the statement import pipeline."""

from __future__ import annotations


class StatementImportError(Exception):
    """Import failure that aborts the whole file."""


class BankDetectionError(StatementImportError):
    """No supported bank could be recognised in the uploaded file."""


class StatementParseError(StatementImportError):
    """The file structure could not be understood (missing header, unreadable sheet)."""

"""Exception types raised by the search and publish layers."""
from __future__ import annotations


class NamebankError(Exception):
    pass


class ConfigurationError(NamebankError):
    """The database is missing something the deployment requires (e.g. a locale row).

    Fatal: callers must not retry.
    """


class UnsupportedLocale(NamebankError, ValueError):
    def __init__(self, code: str):
        super().__init__(f"unsupported locale: {code!r}")
        self.code = code


class TransactionFailure(NamebankError):
    """A storage error aborted a bulk publish; the whole batch was rolled back."""

    def __init__(self, message: str, row_index: int | None = None):
        super().__init__(message)
        self.row_index = row_index

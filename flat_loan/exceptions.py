"""Exceptions raised by the flat loan schedule engine.

Bad input is reported as ``ValueError`` subclasses so callers that already
catch ``ValueError`` around parsing keep working.
"""


class FlatLoanError(Exception):
    """Base class for all errors raised by this package."""


class SchedulePreconditionError(FlatLoanError, ValueError):
    """The loan terms or collaborator output cannot produce a schedule."""


class UnsupportedFrequencyError(SchedulePreconditionError):
    """A period frequency unit has no periods-per-year mapping."""


class CurrencyMismatchError(FlatLoanError, ValueError):
    """Two amounts in different currencies were combined."""


class InvalidAmountError(FlatLoanError, ValueError):
    """An amount or currency scale that cannot be represented."""

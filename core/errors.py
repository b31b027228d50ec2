"""Exceptions raised by the loan engine"""


class LoanEngineError(ValueError):
    """Base class for every error the engine raises on purpose."""


class InvalidArgument(LoanEngineError):
    """Loan terms the formulas cannot work with (tenure < 1, negative principal or rate)."""


class ValidationError(LoanEngineError):
    """A requested change the caller must not offer to apply."""

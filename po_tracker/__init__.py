"""Purchase-order burn-rate and accrual tracking."""

__version__ = "1.0.0"

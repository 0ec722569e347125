"""fleetkm - quarterly odometer ledger for fuel excise reporting."""

__version__ = "0.1.0"

"""
Exceptions raised by the IDL Scanner.

Every failure that ends a scan derives from ScannerError so the CLI
can report it as a plain diagnostic.
"""


class ScannerError(Exception):
    """Base class for all scanner failures."""
    pass


class InvalidAddress(ScannerError):
    """Raised when a textual address is not a valid 32-byte base58 key."""
    pass


class RetrievalError(ScannerError):
    """Raised when the program binary cannot be fetched from the ledger."""
    pass


class QueryError(ScannerError):
    """Raised when an account query fails for reasons other than absence."""
    pass


class DerivationError(ScannerError):
    """Base class for address derivation failures."""
    pass


class NoValidSeedBump(DerivationError):
    """Raised when every bump from 255 down to 0 lands on the curve."""
    pass


class InvalidSeeds(DerivationError):
    """Raised when a candidate program address is a valid curve point."""
    pass


class MaxSeedLengthExceeded(DerivationError):
    """Raised when a seed is too long or there are too many seeds."""
    pass


class IllegalOwner(DerivationError):
    """Raised when a seed-derived address would be owned by a derived address."""
    pass


class StagingError(ScannerError):
    """Raised when the transient program dump cannot be written or read."""
    pass

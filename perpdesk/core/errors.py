class InvalidPositionError(ValueError):
    """Position violates the engine's preconditions (entry price, size)."""


class InvalidAddressError(ValueError):
    """Wallet address is not a 0x-prefixed 20-byte hex string."""


class DataSourceError(RuntimeError):
    """Upstream account data could not be fetched."""


class InvalidOrderError(ValueError):
    """Order carries a non-finite or negative price or size."""

class StoreError(Exception):
    """Base exception for store access errors."""
    pass


class StoreUnavailableError(StoreError):
    """Raised when Redis cannot serve a read or a write."""
    pass

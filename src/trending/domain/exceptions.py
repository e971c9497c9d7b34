class TrendingError(Exception):
    """Base class for impression ingestion and trending query failures."""
    code = "internal_error"


class InvalidInput(TrendingError):
    """Raised when a caller supplies a missing or malformed argument."""
    code = "invalid_input"


class InvalidPeriod(InvalidInput):
    """Raised when a time period is not one of the accepted literals."""
    code = "invalid_period"


class StoreUnavailable(TrendingError):
    """Raised when the impression store cannot be read or written."""
    code = "store_unavailable"


class StoreTimeout(StoreUnavailable):
    """Raised when an impression store call exceeds its time budget."""
    pass


class MetadataUnavailable(TrendingError):
    """Raised when the token metadata source is unreachable as a whole."""
    code = "metadata_unavailable"

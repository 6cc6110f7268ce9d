"""Error handling utilities."""

from typing import Optional


class PropertySearchError(Exception):
    """Base exception for the property search backend."""
    pass


class InvalidRangeError(PropertySearchError):
    """Price range minimum exceeds its maximum."""

    def __init__(self, price_min: float, price_max: float):
        self.price_min = price_min
        self.price_max = price_max
        super().__init__(
            f"Minimum price {price_min:.15g} is greater than maximum price {price_max:.15g}"
        )

    @property
    def hint(self) -> str:
        """User-facing correction hint."""
        return "Minimum price must be less than or equal to maximum price."


class TransportError(PropertySearchError):
    """Listing fetch failed in transit or on the server."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class SupabaseError(TransportError):
    """Supabase operation error."""
    pass


class StoreUnavailableError(PropertySearchError):
    """Listing store is not configured or cannot be reached."""
    pass

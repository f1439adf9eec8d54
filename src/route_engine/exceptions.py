class RouteEngineError(Exception):
    """Base exception for route engine errors."""


class TokenUnavailableError(RouteEngineError):
    """Raised when the geocoding access token cannot be fetched."""


class GeocodeMissError(RouteEngineError):
    """Raised when the geocoding provider has no match for a query."""


class ProviderError(RouteEngineError):
    """Raised when the geocoding provider request fails."""


class CacheLookupError(RouteEngineError):
    """Raised when the geocode cache store cannot be read."""


class CacheWriteError(RouteEngineError):
    """Raised when a geocode cache write-back fails."""


class NothingToRenderError(RouteEngineError):
    """Raised when no stop carries any location data."""


class SessionDisposedError(RouteEngineError):
    """Raised when a disposed route session is used again."""

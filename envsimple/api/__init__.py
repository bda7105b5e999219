"""Remote API client."""

from envsimple.api.client import ApiClient

__all__ = ["ApiClient"]

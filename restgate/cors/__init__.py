"""CORS admission filter."""

from .filter import ALL_ALLOWED_ORIGINS, CorsContext, CorsFilter  # noqa: F401

"""restgate: outcome-dispatching HTTP client and CORS admission filter."""

__version__ = "0.1.0"

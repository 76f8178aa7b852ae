"""whoop-cli - WHOOP API client and adaptive wake detection."""

__version__ = "0.1.0"

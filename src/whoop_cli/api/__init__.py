"""WHOOP REST API client."""

from whoop_cli.api.client import WhoopClient
from whoop_cli.api.endpoints import ENDPOINTS

__all__ = ["ENDPOINTS", "WhoopClient"]

"""
HTTP API.
"""

from ewaab.api.app import build_auth_services, create_app

__all__ = ["build_auth_services", "create_app"]

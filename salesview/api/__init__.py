"""
HTTP layer for SalesView.

Exposes `create_app` so the server can be started with
`uvicorn salesview.api:create_app --factory`.
"""

from salesview.api.app import create_app

__all__ = ["create_app"]

"""HTTP API - FastAPI application exposing the trade feed."""

from starship_realtime.api.app import create_app

__all__ = ["create_app"]

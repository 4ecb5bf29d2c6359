"""Webhook HTTP surface."""

from carto_ci.web.app import create_app

__all__ = ["create_app"]

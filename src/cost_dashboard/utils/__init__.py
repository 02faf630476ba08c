"""Utility helpers for the cost dashboard."""

from .http_client import HTTPClient

__all__ = ["HTTPClient"]

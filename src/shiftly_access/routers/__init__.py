"""Routers package public exports."""

__all__ = ["permissions"]

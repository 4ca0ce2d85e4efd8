"""Top-level access-control package public surface."""

__all__ = [
    "deps",
    "domain",
    "infrastructure",
    "ports",
    "routers",
    "schemas",
    "services",
    "utils",
]

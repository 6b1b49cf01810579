"""Order, user and stock services for a small shop, served as JSON over HTTP."""

__version__ = "0.1.0"

__all__ = ["__version__"]
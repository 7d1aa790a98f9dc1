"""Services layer for Polyscribe application logic."""

from .dispatcher import Dispatcher

__all__ = [
    "Dispatcher",
]

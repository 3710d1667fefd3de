"""HTTP surface for the article feed."""

from .app import create_app, run

__all__ = ["create_app", "run"]

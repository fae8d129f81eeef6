"""FastAPI routers acting as controllers in the MVC architecture."""

from . import revisions, submissions

__all__ = ["revisions", "submissions"]

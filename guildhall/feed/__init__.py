"""Feed blueprint."""

from flask import Blueprint

bp = Blueprint("feed", __name__, url_prefix="/feed")

from . import routes  # noqa: E402, F401
from .services import FeedService  # noqa: E402

__all__ = ["FeedService", "routes"]

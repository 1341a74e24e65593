"""Event blueprint."""

from flask import Blueprint

bp = Blueprint("event", __name__, url_prefix="/events")

from . import routes  # noqa: E402, F401
from .services import EventService  # noqa: E402

__all__ = ["EventService", "routes"]

"""Guild blueprint."""

from flask import Blueprint

bp = Blueprint("guild", __name__, url_prefix="/guild")

from . import routes  # noqa: E402, F401
from .services import GuildService  # noqa: E402

__all__ = ["GuildService", "routes"]

"""Party blueprint."""

from flask import Blueprint

bp = Blueprint("party", __name__, url_prefix="/parties")

from . import routes  # noqa: E402, F401
from .services import PartyService  # noqa: E402

__all__ = ["PartyService", "routes"]

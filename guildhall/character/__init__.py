"""Character blueprint."""

from flask import Blueprint

bp = Blueprint("character", __name__, url_prefix="/characters")

from . import routes  # noqa: E402, F401
from .services import CharacterService  # noqa: E402

__all__ = ["CharacterService", "routes"]

"""Daily and weekly checklist blueprint."""

from flask import Blueprint

bp = Blueprint("checklist", __name__, url_prefix="/checklist")

from . import routes  # noqa: E402, F401
from .services import ChecklistService  # noqa: E402

__all__ = ["ChecklistService", "routes"]

"""Split bill blueprint."""

from flask import Blueprint

bp = Blueprint("split", __name__, url_prefix="/split")

from . import routes  # noqa: E402, F401
from .services import SplitBillService  # noqa: E402

__all__ = ["SplitBillService", "routes"]

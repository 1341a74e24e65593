"""Trade blueprint."""

from flask import Blueprint

bp = Blueprint("trade", __name__, url_prefix="/trade")

from . import routes  # noqa: E402, F401
from .services import MerchantService, TradeService  # noqa: E402

__all__ = ["MerchantService", "TradeService", "routes"]

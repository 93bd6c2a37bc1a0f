"""Rates blueprint: listing, freshness, conversion and on-demand refresh."""

from __future__ import annotations

from flask_smorest import Blueprint

blp = Blueprint("Rates", __name__, description="Exchange rate endpoints")

from . import routes  # noqa: E402,F401

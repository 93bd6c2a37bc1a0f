"""Liveness, rate freshness and scheduler status endpoints."""

from __future__ import annotations

from flask_smorest import Blueprint

blp = Blueprint("Health", __name__, description="Liveness, rate freshness and scheduler status")

from . import routes  # noqa: E402,F401

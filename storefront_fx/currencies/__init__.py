"""Currencies blueprint listing supported currencies and validating codes."""

from __future__ import annotations

from flask_smorest import Blueprint

blp = Blueprint("Currencies", __name__, description="Supported currency endpoints")

from . import routes  # noqa: E402,F401

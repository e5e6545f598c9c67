from __future__ import annotations

from flask import Blueprint, redirect, url_for
from flask.views import MethodView


public_bp = Blueprint("public", __name__)


class LandingView(MethodView):
    def get(self):
        return redirect(url_for("draws.create"), code=303)


public_bp.add_url_rule("/", view_func=LandingView.as_view("landing"))

from __future__ import annotations

from flask import Blueprint, current_app, flash, get_flashed_messages, jsonify, redirect, request, url_for
from flask.views import MethodView
from flask_wtf.csrf import generate_csrf

from ..errors import (
    AlreadyDrawnError,
    EventFullError,
    InsufficientParticipantsError,
    NotFoundError,
    SecretDrawError,
    StoreFullError,
    ValidationError,
)
from ..extensions import get_store
from ..services.draws import run_draw
from ..services.events import create_event, event_name, join_event, manage_view, resolve_view

draws_bp = Blueprint("draws", __name__, url_prefix="/draw")

ERROR_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    EventFullError: 403,
    StoreFullError: 503,
    AlreadyDrawnError: 409,
    InsufficientParticipantsError: 400,
}

UNSAVED_WARNING = "Your change is live, but it could not be saved to disk."


@draws_bp.errorhandler(SecretDrawError)
def handle_draw_error(error: SecretDrawError):
    status = next((code for kind, code in ERROR_STATUS.items() if isinstance(error, kind)), 500)
    return jsonify(error=str(error)), status


def _link(endpoint: str, **values) -> str:
    return url_for(endpoint, _external=True, _scheme=current_app.config["PREFERRED_URL_SCHEME"], **values)


def _messages() -> list[dict]:
    return [{"category": c, "message": m} for c, m in get_flashed_messages(with_categories=True)]


def _warn_if_unsaved(persisted: bool) -> None:
    if not persisted:
        flash(UNSAVED_WARNING, "warning")


class CreateDrawView(MethodView):
    def get(self):
        return jsonify(csrf_token=generate_csrf(), messages=_messages())

    def post(self):
        created = create_event(
            get_store(),
            name=request.form.get("eventname", ""),
            organizer_name=request.form.get("organizername", ""),
            organizer_wish=request.form.get("organizerwish", ""),
            expected=request.form.get("expected", ""),
        )
        _warn_if_unsaved(created.persisted)
        # The organizer's token only ever travels in this redirect.
        return redirect(
            url_for("draws.manage", event_id=created.event_id, organizer=created.organizer_token),
            code=303,
        )


class JoinView(MethodView):
    def get(self, event_id: str):
        return jsonify(
            event_id=event_id,
            event_name=event_name(get_store(), event_id),
            csrf_token=generate_csrf(),
            messages=_messages(),
        )

    def post(self, event_id: str):
        joined = join_event(
            get_store(),
            event_id,
            name=request.form.get("name", ""),
            wish=request.form.get("wish", ""),
        )
        _warn_if_unsaved(joined.persisted)
        return redirect(url_for("draws.participant", event_id=event_id, token=joined.token), code=303)


class ManageDrawView(MethodView):
    def get(self, event_id: str):
        organizer = request.args.get("organizer") or None
        view = manage_view(get_store(), event_id, organizer_token=organizer)

        organizer_link = None
        # Only hand the organizer their own assignment link after the draw.
        if view.draw_done and view.organizer_token_valid:
            organizer_link = _link("draws.participant", event_id=event_id, token=organizer)

        return jsonify(
            event_id=view.event_id,
            event_name=view.name,
            expected_participants=view.expected_participants,
            participants=view.participant_names,
            participant_count=view.participant_count,
            all_submitted=view.all_submitted,
            expected_reached=view.expected_reached,
            draw_done=view.draw_done,
            can_draw=view.can_draw,
            join_link=_link("draws.join", event_id=event_id),
            organizer_link=organizer_link,
            csrf_token=generate_csrf(),
            messages=_messages(),
        )


class RunDrawView(MethodView):
    def post(self, event_id: str):
        committed = run_draw(get_store(), event_id)
        _warn_if_unsaved(committed.persisted)

        organizer = request.args.get("organizer")
        if organizer:
            return redirect(url_for("draws.manage", event_id=event_id, organizer=organizer), code=303)
        return redirect(url_for("draws.manage", event_id=event_id), code=303)


class ParticipantView(MethodView):
    def get(self, event_id: str, token: str):
        view = resolve_view(get_store(), event_id, token)
        payload = {"name": view.self_name, "ready": view.ready}
        if view.ready:
            payload["gift_for"] = view.recipient_name
            payload["wish"] = view.recipient_wish
        payload["messages"] = _messages()
        return jsonify(payload)


draws_bp.add_url_rule("/create", view_func=CreateDrawView.as_view("create"), methods=["GET", "POST"])
draws_bp.add_url_rule("/<event_id>/join", view_func=JoinView.as_view("join"), methods=["GET", "POST"])
draws_bp.add_url_rule("/<event_id>/manage", view_func=ManageDrawView.as_view("manage"))
draws_bp.add_url_rule("/<event_id>/draw", view_func=RunDrawView.as_view("run_draw"), methods=["POST"])
draws_bp.add_url_rule(
    "/<event_id>/participant/<token>",
    view_func=ParticipantView.as_view("participant"),
)

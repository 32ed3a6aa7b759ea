from flask import Blueprint, g, jsonify

from myka.errors import ValidationError
from myka.services.installation import PROMPT_OUTCOMES, InstallSignals

from .common import get_runtime, json_body, login_required

bp = Blueprint("install", __name__, url_prefix="/api/install")


def _state_response(tracker):
    data = tracker.state.to_dict()
    data["shouldShowPrompt"] = tracker.should_show_prompt()
    return jsonify(data)


@bp.get("/state")
@login_required
def get_state():
    return _state_response(get_runtime().tracker(g.user_id))


@bp.post("/state")
@login_required
def report_signals():
    tracker = get_runtime().tracker(g.user_id)
    signals = InstallSignals.from_payload(json_body())
    if signals.app_installed:
        tracker.handle_install_event()
    tracker.track_installation_state(signals)
    return _state_response(tracker)


@bp.post("/prompt")
@login_required
def prompt_outcome():
    """The client showed its native prompt and reports what the user chose."""
    outcome = json_body().get("outcome")
    if outcome not in PROMPT_OUTCOMES:
        raise ValidationError("outcome must be accepted or dismissed")
    tracker = get_runtime().tracker(g.user_id)
    shown = tracker.show_install_prompt(lambda: outcome)
    data = tracker.state.to_dict()
    data["recorded"] = shown is not None
    return jsonify(data)


@bp.post("/reset")
@login_required
def reset_prompt():
    tracker = get_runtime().tracker(g.user_id)
    tracker.reset_prompt_state()
    return _state_response(tracker)

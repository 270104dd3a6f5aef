# app.py
"""
Health Tracker Flask app.
Features:
 - Session gate over Supabase auth (loading / sign-in / app), per browser
 - Daily health entries: create, edit, delete, stats cards, weekly charts
 - Calories-burned derivation from workout type and minutes
 - Mind-map list, canvas editing API (add/drag/connect/delete) and SVG export
 - Health endpoint for uptime monitoring

Each browser's Supabase tokens live in the Flask session. Every request
builds its own client, gate, store and repository from them; only the
open mind-map canvases outlive a request, held per user in CanvasDrafts.

Run locally with `python app.py`; in production use gunicorn `app:app`.
"""

import logging
import os
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from functools import wraps
from typing import Any, Callable, Optional

from flask import (
    Blueprint, Flask, abort, current_app, flash, g, jsonify, redirect,
    render_template, request, session, url_for, Response
)
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from auth_utils import AUTH_SESSION_KEY, SupabaseAuth
from config import Config, configure_logging
from data_service import DataServiceUnavailable, SupabaseDataService, create_supabase_client
from health.charts import build_charts, charts_json, sleep_quality_series, weekly_frame
from health.form import HealthEntryForm
from health.stats import summary_cards
from health.store import HealthEntryStore
from mindmap.canvas import MindMapCanvas
from mindmap.drafts import CanvasDrafts, is_draft_key, new_draft_key
from mindmap.list_view import summarize_all
from mindmap.repository import MindMapRepository
from models.mind_map import DEFAULT_MIND_MAP_NAME
from notifications import ToastQueue
from session_gate import SessionGate, SessionState

logger = logging.getLogger(__name__)

bp = Blueprint("tracker", __name__)
limiter = Limiter(get_remote_address)


# ============================================================
# Services wiring
# ============================================================
@dataclass
class TrackerServices:
    """App-wide factories; everything tied to a user is built per request."""
    client_factory: Callable[[], Any]
    data_service_factory: Callable[[Any], Any]
    session_provider_factory: Callable[[Any, Optional[dict]], Any]
    drafts: CanvasDrafts
    configured: bool = True


def services() -> TrackerServices:
    return current_app.extensions["tracker"]


def create_app(config=None, client_factory=None, data_service_factory=None,
               session_provider_factory=None):
    app = Flask(__name__, static_folder="static", template_folder="templates")
    app.config.from_object(Config)
    app.config.setdefault("RATELIMIT_STORAGE_URI", "memory://")
    if config:
        app.config.update(config)
    app.secret_key = app.config["SECRET_KEY"]

    configure_logging(app.config.get("LOG_LEVEL"))
    CORS(app, resources={r"/api/*": {"origins": "*"}})
    limiter.init_app(app)

    configured = True
    if client_factory is None:
        url, key = app.config.get("SUPABASE_URL"), app.config.get("SUPABASE_KEY")
        configured = bool(url and key)
        if not configured:
            logger.warning("ℹ️ Supabase not configured; running without persistence.")
        client_factory = lambda: create_supabase_client(url, key)

    app.extensions["tracker"] = TrackerServices(
        client_factory=client_factory,
        data_service_factory=data_service_factory or SupabaseDataService,
        session_provider_factory=session_provider_factory or SupabaseAuth,
        drafts=CanvasDrafts(app.config["CANVAS_DRAFTS_PER_USER"]),
        configured=configured,
    )
    app.register_blueprint(bp)

    @app.context_processor
    def inject_now():
        gate = g.get("gate")
        return {
            "current_year": datetime.now().year,
            "signed_in": bool(gate and gate.is_authenticated),
        }

    return app


# ============================================================
# Per-request services
# ============================================================
@bp.before_request
def open_request_services():
    svc = services()
    g.notifications = ToastQueue()
    g.auth = g.gate = g.store = g.mind_maps = None
    try:
        client = svc.client_factory()
    except DataServiceUnavailable as e:
        logger.debug("No data service for this request: %s", e)
        return

    data_service = svc.data_service_factory(client)
    g.store = HealthEntryStore(
        data_service, g.notifications,
        entries_table=current_app.config["HEALTH_ENTRIES_TABLE"],
        workout_types_table=current_app.config["WORKOUT_TYPES_TABLE"],
    )
    g.mind_maps = MindMapRepository(data_service, g.notifications,
                                    table=current_app.config["MIND_MAPS_TABLE"])
    g.auth = svc.session_provider_factory(client, session.get(AUTH_SESSION_KEY))
    g.gate = SessionGate(g.auth)
    g.gate.start()

    # keep refreshed tokens; forget ones the provider rejected
    if g.gate.is_authenticated:
        if session.get(AUTH_SESSION_KEY) != g.gate.session:
            session[AUTH_SESSION_KEY] = g.gate.session
    elif g.gate.state is SessionState.UNAUTHENTICATED and AUTH_SESSION_KEY in session:
        session.pop(AUTH_SESSION_KEY)


@bp.teardown_request
def close_request_services(exc):
    gate = g.pop("gate", None)
    if gate is not None:
        gate.close()


def current_user_id():
    return g.gate.session.get("user_id")


# ============================================================
# Notifications & gating helpers
# ============================================================
def flash_toasts():
    for toast in g.notifications.drain():
        flash(f"{toast.title}: {toast.description}", toast.category)


def json_response(payload=None, status=200):
    body = dict(payload or {})
    body["toasts"] = [t.to_dict() for t in g.notifications.drain()]
    return jsonify(body), status


def _loading_page():
    return render_template("loading.html"), 503


def gated(view):
    """HTML views: placeholder while loading, sign-in when signed out."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        if g.gate is None:
            return _loading_page()
        return g.gate.render(
            loading=_loading_page,
            sign_in=lambda: redirect(url_for("tracker.login")),
            content=lambda: view(*args, **kwargs),
        )
    return wrapper


def api_gated(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if g.gate is None:
            return jsonify({"error": "Data service unavailable"}), 503
        return g.gate.render(
            loading=lambda: (jsonify({"error": "Session is loading"}), 503),
            sign_in=lambda: (jsonify({"error": "Authentication required"}), 401),
            content=lambda: view(*args, **kwargs),
        )
    return wrapper


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, description="Expected a JSON object body")
    return data


def _coords(data, *names):
    try:
        return [float(data[n]) for n in names]
    except (KeyError, TypeError, ValueError):
        abort(400, description=f"Expected numeric {', '.join(names)}")


@bp.app_errorhandler(400)
def bad_request(e):
    if request.path.startswith("/api/"):
        return jsonify({"error": e.description}), 400
    return e


@bp.app_errorhandler(429)
def too_many_requests(e):
    if request.path.startswith("/api/"):
        return jsonify({"error": f"Rate limit exceeded: {e.description}"}), 429
    return e


# ============================================================
# Routes - session gate & auth
# ============================================================
@bp.route("/")
def index():
    if g.gate is None:
        return _loading_page()
    return g.gate.render(
        loading=_loading_page,
        sign_in=lambda: render_template("login.html"),
        content=lambda: redirect(url_for("tracker.dashboard")),
    )


@bp.route("/login", methods=["GET", "POST"])
@limiter.limit(lambda: current_app.config["AUTH_RATELIMIT"], methods=["POST"])
def login():
    if request.method == "POST":
        email = request.form.get("email", "").strip().lower()
        password = request.form.get("password", "")
        if g.auth is None:
            flash("Sign-in is unavailable: Supabase is not configured.", "danger")
            return render_template("login.html"), 503
        try:
            tokens = g.auth.sign_in(email, password)
        except Exception as e:
            logger.error("Sign-in failed: %s", e)
            tokens = None
        if not tokens:
            flash("Invalid email or password", "danger")
            return render_template("login.html"), 401
        session[AUTH_SESSION_KEY] = tokens
        flash("Welcome back!", "success")
        return redirect(url_for("tracker.index"))

    if g.gate is not None and g.gate.is_authenticated:
        return redirect(url_for("tracker.dashboard"))
    return render_template("login.html")


@bp.route("/register", methods=["GET", "POST"])
@limiter.limit(lambda: current_app.config["AUTH_RATELIMIT"], methods=["POST"])
def register():
    if request.method == "POST":
        name = request.form.get("name", "")
        email = request.form.get("email", "").strip().lower()
        password = request.form.get("password", "")
        if not all([email, password]):
            flash("Please fill all fields.", "danger")
            return redirect(url_for("tracker.register"))
        if g.auth is None:
            flash("Registration is unavailable: Supabase is not configured.", "danger")
            return render_template("register.html"), 503
        try:
            g.auth.sign_up(email, password, name)
        except Exception as e:
            logger.error("Registration failed: %s", e)
            flash("Registration failed. Please try again.", "danger")
            return redirect(url_for("tracker.register"))
        flash("Account created successfully. Please check your email, then log in.", "success")
        return redirect(url_for("tracker.login"))

    return render_template("register.html")


@bp.route("/logout")
def logout():
    if g.auth is not None:
        try:
            g.auth.sign_out()
        except Exception as e:
            logger.error("Sign-out failed: %s", e)
    session.pop(AUTH_SESSION_KEY, None)
    flash("Logged out successfully.", "success")
    return redirect(url_for("tracker.login"))


# ================================
# 📊 DASHBOARD
# ================================
@bp.route("/dashboard")
@gated
def dashboard():
    store = g.store
    store.load()
    figures = build_charts(store.entries)
    flash_toasts()
    return render_template(
        "dashboard.html",
        cards=summary_cards(store.entries),
        charts=charts_json(figures),
        has_charts=bool(figures),
        entries=store.recent(),
    )


def _form_page(form, status=200):
    flash_toasts()
    return render_template("entry_form.html", form=form, workout_types=form.workout_types), status


def _stored_entry(entry_id):
    """Load fresh and look up entry_id; 404 when the user has no such entry."""
    g.store.load()
    entry = g.store.get(entry_id)
    if entry is None:
        abort(404)
    return entry


@bp.route("/entries/new")
@gated
def new_entry():
    g.store.load()
    return _form_page(HealthEntryForm(g.store.workout_types))


@bp.route("/entries/<entry_id>/edit")
@gated
def edit_entry(entry_id):
    entry = _stored_entry(entry_id)
    return _form_page(HealthEntryForm(g.store.workout_types, entry))


@bp.route("/entries", methods=["POST"])
@bp.route("/entries/<entry_id>", methods=["POST"])
@gated
def save_entry(entry_id=None):
    store = g.store
    if entry_id:
        entry = _stored_entry(entry_id)
        form = HealthEntryForm(store.workout_types, entry).update(request.form)
        saved = store.save(form.changes(), entry_id)
    else:
        store.load()
        form = HealthEntryForm(store.workout_types).update(request.form)
        saved = store.save(form.to_payload())
    if saved is None:
        return _form_page(form, 400)
    flash_toasts()
    return redirect(url_for("tracker.dashboard"))


@bp.route("/entries/<entry_id>/delete", methods=["POST"])
@gated
def delete_entry(entry_id):
    g.store.delete(entry_id)
    flash_toasts()
    return redirect(url_for("tracker.dashboard"))


# ============================================================
# JSON API - health entries
# ============================================================
@bp.route("/api/entries", methods=["GET"])
@api_gated
def api_entries():
    store = g.store
    store.load()
    return json_response({
        "entries": [e.to_record() for e in store.entries],
        "workout_types": [asdict(w) for w in store.workout_types],
    })


@bp.route("/api/entries", methods=["POST"])
@bp.route("/api/entries/<entry_id>", methods=["PUT"])
@api_gated
def api_save_entry(entry_id=None):
    """
    Create an entry, or update one in place.

    An update sends only the fields present in the JSON body, plus
    calories_burned when the workout fields derive it.
    """
    store = g.store
    body = _json_body()
    if not store.load():
        return json_response({"entry": None}, 502)
    if entry_id:
        entry = store.get(entry_id)
        if entry is None:
            return json_response({"error": f"Unknown entry: {entry_id}"}, 404)
        payload = HealthEntryForm(store.workout_types, entry).update(body).changes()
    else:
        payload = HealthEntryForm(store.workout_types).update(body).to_payload()
    saved = store.save(payload, entry_id)
    if saved is None:
        return json_response({"entry": None}, 400)
    return json_response({"entry": saved.to_record()}, 200 if entry_id else 201)


@bp.route("/api/entries/<entry_id>", methods=["DELETE"])
@api_gated
def api_delete_entry(entry_id):
    ok = g.store.delete(entry_id)
    return json_response({"deleted": ok}, 200 if ok else 502)


@bp.route("/api/stats")
@api_gated
def api_stats():
    store = g.store
    store.load()
    return json_response({"cards": summary_cards(store.entries)})


@bp.route("/api/charts")
@api_gated
def api_charts():
    store = g.store
    store.load()
    payload = {
        "figures": build_charts(store.entries),
        "sleep_quality": sleep_quality_series(weekly_frame(store.entries)),
    }
    return current_app.response_class(charts_json(payload), mimetype="application/json")


@bp.route("/api/calories-burned", methods=["POST"])
@api_gated
def api_calories_burned():
    """
    Preview the entry form after a field change.

    JSON input: the current form fields plus "changed": {"field": value}.
    """
    store = g.store
    store.load()
    data = _json_body()
    changed = data.get("changed") or {}
    if not isinstance(changed, dict):
        abort(400, description="'changed' must be an object")
    form = HealthEntryForm(store.workout_types)
    form.update({k: v for k, v in data.items() if k != "changed" and k not in changed})
    for name, value in changed.items():
        try:
            form.set_field(name, value)
        except KeyError:
            abort(400, description=f"Unknown field: {name}")
    return json_response({"form": form.to_payload()})


# ============================================================
# Mind maps - list & canvas pages
# ============================================================
def _canvas(key) -> MindMapCanvas:
    """The user's open canvas for key, loading a stored map on first use."""
    drafts = services().drafts
    user_id = current_user_id()
    canvas = drafts.get(user_id, key)
    if canvas is not None:
        return canvas
    if is_draft_key(key):
        abort(404)
    mind_map = g.mind_maps.get(key)
    if mind_map is None:
        abort(404)
    canvas = MindMapCanvas(mind_map.nodes, name=mind_map.name,
                           mind_map_id=mind_map.id, description=mind_map.description)
    return drafts.put(user_id, key, canvas)


@bp.route("/mindmaps")
@gated
def mind_maps():
    maps = g.mind_maps.list()
    flash_toasts()
    return render_template("mindmaps.html", mind_maps=summarize_all(maps))


@bp.route("/mindmaps/new", methods=["POST"])
@gated
def new_mind_map():
    key = new_draft_key()
    services().drafts.put(current_user_id(), key, MindMapCanvas(name=request.form.get("name") or None))
    return redirect(url_for("tracker.mind_map", key=key))


@bp.route("/mindmaps/<key>")
@gated
def mind_map(key):
    canvas = _canvas(key)
    flash_toasts()
    return render_template("canvas.html", key=key, canvas=canvas,
                           name=canvas.name or DEFAULT_MIND_MAP_NAME, svg=canvas.to_svg())


@bp.route("/mindmaps/<key>/export.svg")
@gated
def export_mind_map(key):
    canvas = _canvas(key)
    filename = (canvas.name or DEFAULT_MIND_MAP_NAME).replace(" ", "_")
    return Response(canvas.to_svg(), mimetype="image/svg+xml",
                    headers={"Content-Disposition": f'attachment; filename="{filename}.svg"'})


@bp.route("/mindmaps/<mind_map_id>/delete", methods=["POST"])
@gated
def delete_mind_map(mind_map_id):
    if g.mind_maps.delete(mind_map_id):
        services().drafts.discard(current_user_id(), mind_map_id)
    flash_toasts()
    return redirect(url_for("tracker.mind_maps"))


# ============================================================
# JSON API - canvas editing
# Exempt from the default limit: a drag posts one move per pointer event.
# ============================================================
def _canvas_state(canvas, status=200, **extra):
    return json_response(dict(canvas.to_dict(), **extra), status)


@bp.route("/api/canvas/<key>", methods=["GET"])
@limiter.exempt
@api_gated
def api_canvas(key):
    return _canvas_state(_canvas(key))


@bp.route("/api/canvas/<key>/nodes", methods=["POST"])
@limiter.exempt
@api_gated
def api_add_node(key):
    canvas = _canvas(key)
    data = request.get_json(silent=True) or {}
    node = canvas.add_node(data.get("type", "default"))
    return _canvas_state(canvas, 201, node_id=node.id)


@bp.route("/api/canvas/<key>/nodes/<node_id>", methods=["PATCH"])
@limiter.exempt
@api_gated
def api_update_node(key, node_id):
    canvas = _canvas(key)
    try:
        canvas.update_node(node_id, **_json_body())
    except TypeError as e:
        abort(400, description=str(e))
    return _canvas_state(canvas)


@bp.route("/api/canvas/<key>/nodes/<node_id>", methods=["DELETE"])
@limiter.exempt
@api_gated
def api_delete_node(key, node_id):
    canvas = _canvas(key)
    return _canvas_state(canvas, deleted=canvas.delete_node(node_id))


@bp.route("/api/canvas/<key>/connect", methods=["POST"])
@limiter.exempt
@api_gated
def api_toggle_connecting(key):
    canvas = _canvas(key)
    canvas.toggle_connecting()
    return _canvas_state(canvas)


@bp.route("/api/canvas/<key>/pointer/<event>", methods=["POST"])
@limiter.exempt
@api_gated
def api_pointer(key, event):
    canvas = _canvas(key)
    data = request.get_json(silent=True) or {}
    if event == "down":
        x, y = _coords(data, "x", "y")
        try:
            connected_from = canvas.pointer_down(data.get("node_id"), x, y)
        except KeyError as e:
            abort(400, description=str(e))
        return _canvas_state(canvas, connected_from=connected_from)
    if event == "move":
        canvas.pointer_move(*_coords(data, "x", "y"))
    elif event in ("up", "leave"):
        canvas.pointer_up()
    else:
        abort(404)
    return _canvas_state(canvas)


@bp.route("/api/canvas/<key>/save", methods=["POST"])
@api_gated
def api_save_canvas(key):
    canvas = _canvas(key)
    data = request.get_json(silent=True) or {}
    if data.get("name"):
        canvas.name = data["name"]

    def persist(name, nodes):
        return g.mind_maps.save(name, nodes, mind_map_id=canvas.mind_map_id,
                                description=canvas.description)

    stored = canvas.save(persist)
    if stored is None:
        return _canvas_state(canvas, 400, saved=False, key=key)
    canvas.mind_map_id = stored.id
    if key != stored.id:
        services().drafts.rekey(current_user_id(), key, stored.id)
    return _canvas_state(canvas, saved=True, key=stored.id)


# ============================================================
# Health check
# ============================================================
@bp.route("/health", methods=["GET"])
def health():
    gate = g.get("gate")
    return jsonify({
        "status": "ok",
        "time": time.time(),
        "supabase": services().configured,
        "session": gate.state.value if gate else SessionState.LOADING.value,
    }), 200


app = create_app()

# ============================================================
# Run
# ============================================================
if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG", "False") == "True")

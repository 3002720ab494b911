"""Status and health endpoints (no authentication).

``/status`` is a cheap liveness snapshot of the process; ``/health`` also
pings MongoDB.
"""
from flask import Blueprint, current_app, jsonify, render_template, request
from importlib import metadata
import logging
import time

from meteo_api.app import db
from meteo_api.app.serialization import utc_now_iso

logger = logging.getLogger(__name__)

status_bp = Blueprint('status', __name__)

DISTRIBUTION_NAME = 'meteo-stations-api'


@status_bp.record_once
def _record_start_time(state):
    state.app.extensions.setdefault('started_at', time.monotonic())


def app_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return current_app.config.get('APP_VERSION', '0.0.0')


def status_snapshot() -> dict:
    started_at = current_app.extensions.get('started_at', time.monotonic())
    return {
        "status": "ok",
        "version": app_version(),
        "uptime": int(time.monotonic() - started_at),
        "environment": current_app.config.get('APP_ENV', 'production'),
        "timestamp": utc_now_iso(),
    }


def _wants_html() -> bool:
    if request.args.get('format') == 'html':
        return True
    best = request.accept_mimetypes.best_match(['application/json', 'text/html'])
    return best == 'text/html' and request.accept_mimetypes[best] > request.accept_mimetypes['application/json']


@status_bp.route('/status', methods=['GET'])
def get_status():
    """Application status: JSON by default, an HTML page for browsers."""
    snapshot = status_snapshot()
    if _wants_html():
        return render_template('status.html', status=snapshot)
    return jsonify(snapshot), 200


@status_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint with database connectivity."""
    response = {
        "status": "ok",
        "service": "meteo-stations-api"
    }

    db_health = db.health_check()
    response["database"] = db_health
    if db_health.get("status") != "healthy":
        response["status"] = "degraded"

    return jsonify(response), 200

from flask import Blueprint, jsonify

from backend.database.context import DatabaseContext
from backend.database.connection_state_enum import ConnectionState

bp = Blueprint("health_controller", __name__)


@bp.route("/health", methods=["GET"])
def health():
    """
    Report connection state for MongoDB and Redis without triggering a connect.
    """
    connections = DatabaseContext.get_connection_manager().status()
    ready = all(c["state"] == ConnectionState.READY.value for c in connections.values())
    return jsonify({
        "status": "ok" if ready else "degraded",
        "connections": connections,
    }), 200

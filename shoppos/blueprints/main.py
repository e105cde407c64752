"""Main blueprint with health check and CSRF token endpoints."""
from flask import Blueprint, jsonify, current_app
from flask_wtf.csrf import generate_csrf
from sqlalchemy import text
from shoppos.database import get_session

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """
    Health check endpoint that validates database connection.

    Returns:
        200: Healthy (DB connected)
        500: Unhealthy (DB error)
    """
    try:
        session = get_session()
        row = session.execute(text("SELECT 1 as health_check")).fetchone()

        if row and row[0] == 1:
            return jsonify({
                'status': 'healthy',
                'database': 'connected'
            }), 200
        return jsonify({
            'status': 'unhealthy',
            'database': 'error',
            'message': 'Unexpected query result'
        }), 500

    except Exception as e:
        current_app.logger.error(f"Health check failed: {e}")
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'message': 'Failed to connect to database'
        }), 500


@main_bp.route('/csrf-token')
def csrf_token():
    """CSRF token for JSON clients; send it back in the X-CSRFToken header."""
    return jsonify({'csrfToken': generate_csrf()})

"""Middleware for authenticated operator context."""
from functools import wraps
from flask import session, g, current_app
from shoppos.database import get_session
from shoppos.models import AppUser
from shoppos.exceptions import UnauthorizedError, ValidationError


def load_current_user():
    """
    Load the current operator into g (Flask's per-request global).

    Called before each request. The session cookie is issued by the
    authentication service; this only resolves it. Sets g.user and
    g.business_id when the session belongs to an active user.
    """
    g.user = None
    g.business_id = None

    try:
        user_id = session.get('user_id')
        if user_id:
            db_session = get_session()
            if not db_session:
                return

            user = db_session.query(AppUser).filter_by(id=user_id, active=True).first()
            if user:
                g.user = user
                g.business_id = user.business_id
    except Exception as e:
        # Avoid crashing the whole app if context loading fails
        current_app.logger.error(f"Error in load_current_user: {e}")


def require_login(f):
    """Decorator: Require an authenticated operator (401 JSON otherwise)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise UnauthorizedError()
        return f(*args, **kwargs)
    return decorated_function


def require_business(f):
    """
    Decorator: Require the operator to belong to a business.

    Must be used AFTER require_login.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('business_id') is None:
            raise ValidationError('User has no business')
        return f(*args, **kwargs)
    return decorated_function

"""
Per-request state handed to the views.

Instead of fishing the connection and the logged in user out of `g` in every
view, `load_request_context` builds one RequestContext per request and
`with_context` passes it to the view as its first argument.
"""
import logging
import sqlite3
from dataclasses import dataclass
from functools import wraps
from typing import Optional

from flask import current_app, flash, g, redirect, session, url_for

from database import after_commit, get_db
from models.uploads import UploadStore
from models.users import get_user

logger = logging.getLogger(__name__)

NOT_AUTHORIZED = "You are not authorized to view that page."


@dataclass
class RequestContext:
    db: sqlite3.Connection
    uploads: UploadStore
    user: Optional[dict] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and bool(self.user['admin'])


def load_request_context():
    """Resolves the session's current_user_id once per request."""
    db = get_db()
    user = None
    uid = session.get('current_user_id')
    if uid is not None:
        user = get_user(db, uid)
        if user is None:
            logger.warning("Session points at missing user %s, clearing it", uid)
            session.clear()
    uploads = UploadStore(current_app.config['UPLOAD_FOLDER'], deferred=True)
    after_commit(uploads.flush)
    g.ctx = RequestContext(db=db, uploads=uploads, user=user)


def current_context() -> RequestContext:
    if 'ctx' not in g:
        load_request_context()
    return g.ctx


def with_context(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        return view(current_context(), *args, **kwargs)
    return wrapped


def deny(endpoint='home', **values):
    flash(NOT_AUTHORIZED, 'danger')
    return redirect(url_for(endpoint, **values))


def login_required(view):
    """Requires a logged in user before accessing a route."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_context().is_authenticated:
            logger.warning("Anonymous access to %s refused", view.__name__)
            return deny()
        return view(*args, **kwargs)
    return wrapped


def admin_required(view):
    """Requires a logged in admin before accessing a route."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_context().is_admin:
            logger.warning("Non-admin access to %s refused", view.__name__)
            return deny()
        return view(*args, **kwargs)
    return wrapped


def init_app(app):
    app.before_request(load_request_context)

    @app.context_processor
    def inject_current_user():
        return {'current_user': current_context().user}

import logging
import secrets

from flask import abort, current_app, redirect, request, session
from werkzeug.middleware.proxy_fix import ProxyFix

logger = logging.getLogger(__name__)

SAFE_METHODS = {"GET", "HEAD", "OPTIONS", "TRACE"}
MASKED_PARAMS = {"password", "password_confirm", "csrf_token"}


def csrf_token():
    """One token per session, created on first use."""
    if 'csrf' not in session:
        session['csrf'] = secrets.token_hex(16)
    return session['csrf']


def csrf_protect():
    # read-only verbs are always allowed
    if request.method in SAFE_METHODS or not current_app.config['CSRF_ENABLED']:
        return
    token = session.get('csrf', '')
    sent = request.form.get('csrf_token') or request.headers.get('X-CSRFToken', '')
    if not token or not secrets.compare_digest(token, sent):
        logger.warning("CSRF token missing or invalid for %s %s", request.method, request.path)
        abort(403)


def force_ssl():
    if current_app.config['FORCE_SSL'] and not request.is_secure:
        return redirect(request.url.replace('http://', 'https://', 1), code=301)
    return None


def log_parameters():
    params = {key: ('[FILTERED]' if key in MASKED_PARAMS else value)
              for key, value in request.values.items()}
    logger.debug("%s %s params=%s", request.method, request.path, params)


def init_app(app):
    # X-Forwarded-Proto decides whether the request counts as secure
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)
    app.before_request(force_ssl)
    if app.config['ENV'] == 'development':
        app.before_request(log_parameters)
    app.before_request(csrf_protect)
    app.jinja_env.globals['csrf_token'] = csrf_token

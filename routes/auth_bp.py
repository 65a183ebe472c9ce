import logging
import secrets
from urllib.parse import urlencode

import requests
from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, session, url_for

from request_context import with_context
from models.users import authorize, oauth_user

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['GET'])
def login():
    return render_template('users/login.html', user={}, errors={})


@auth_bp.route('/login', methods=['POST'])
@with_context
def login_post(ctx):
    email = request.form.get('email', '')
    user = authorize(ctx.db, email, request.form.get('password', ''))
    if user is None:
        logger.info("Failed login for %s", email)
        errors = {'login': ["Invalid email or password."]}
        return render_template('users/login.html', user={'email': email}, errors=errors), 422

    session.clear()
    session['current_user_id'] = user['id']
    flash(f"Hello {user['name']}, Welcome back!", 'success')
    return redirect(url_for('home'))


@auth_bp.route('/logout')
def logout():
    session.clear()
    flash("Goodbye!", 'success')
    return redirect(url_for('home'))


# --- GITHUB OAUTH ---

@auth_bp.route('/auth/github')
def github_login():
    """Sends the browser to GitHub; the state value comes back on the callback."""
    state = secrets.token_urlsafe(16)
    session['oauth_state'] = state
    query = urlencode({
        'client_id': current_app.config['GITHUB_CLIENT_ID'],
        'redirect_uri': url_for('auth.github_callback', _external=True),
        'scope': 'read:user user:email',
        'state': state,
    })
    return redirect(f"{current_app.config['GITHUB_AUTHORIZE_URL']}?{query}")


def fetch_github_user(code):
    """
    Exchanges the callback code for an access token and loads the GitHub
    profile. Returns None when GitHub refuses either step.
    """
    cfg = current_app.config
    try:
        token_resp = requests.post(cfg['GITHUB_TOKEN_URL'], data={
            'client_id': cfg['GITHUB_CLIENT_ID'],
            'client_secret': cfg['GITHUB_CLIENT_SECRET'],
            'code': code,
        }, headers={'Accept': 'application/json'}, timeout=10)
        token_resp.raise_for_status()
        access_token = token_resp.json().get('access_token')
        if not access_token:
            return None
        user_resp = requests.get(cfg['GITHUB_USER_URL'], headers={
            'Authorization': f"Bearer {access_token}",
            'Accept': 'application/json',
        }, timeout=10)
        user_resp.raise_for_status()
        return user_resp.json()
    except requests.RequestException:
        logger.exception("GitHub OAuth exchange failed")
        return None


@auth_bp.route('/auth/github/callback')
@with_context
def github_callback(ctx):
    expected = session.pop('oauth_state', None)
    code = request.args.get('code')
    if not code or not expected or request.args.get('state') != expected:
        abort(401)

    profile = fetch_github_user(code)
    if not profile or 'id' not in profile:
        abort(401)

    user, created = oauth_user(ctx.db, 'github', profile['id'], profile.get('name'),
                               profile.get('login'), profile.get('email'))
    session['current_user_id'] = user['id']
    if created:
        flash("User was created successfully", 'success')
    flash(f"Hello {user['name']}, Welcome back!", 'success')
    return redirect(url_for('home'))

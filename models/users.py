import logging
import secrets
import time

from werkzeug.security import check_password_hash, generate_password_hash

from database import now
from form_validators import (column_available, email_like, length_in_range, string_is_present,
                             strings_match, validate)

logger = logging.getLogger(__name__)

PASSWORD_MIN = 6
PASSWORD_MAX = 20

# Columns that are safe to hand to templates
PUBLIC_COLUMNS = 'id, name, username, email, admin, provider, created_at, updated_at'


def get_user(db, user_id):
    row = db.execute('SELECT * FROM users WHERE id = ?', (user_id,)).fetchone()
    return dict(row) if row else None


def list_users_query():
    return f'SELECT {PUBLIC_COLUMNS} FROM users ORDER BY id ASC'


def _password_checks(form):
    password = form.get('password') or ''
    return (
        length_in_range('password', password, PASSWORD_MIN, PASSWORD_MAX, "Password is too weak."),
        strings_match('password_confirm', password, form.get('password_confirm') or '',
                      "Passwords do not match"),
    )


def create_user(db, form):
    """
    Registers a regular (non-admin) user.
    Returns (user, errors); the row is only written when errors is empty.
    """
    name = (form.get('name') or '').strip()
    username = (form.get('username') or '').strip()
    email = (form.get('email') or '').strip().lower()
    errors = validate(
        string_is_present('name', name),
        string_is_present('username', username),
        string_is_present('email', email) or email_like('email', email),
        string_is_present('password', form.get('password')),
        *_password_checks(form),
        column_available(db, 'username', 'users', 'username', username),
        column_available(db, 'email', 'users', 'email', email),
    )
    if errors:
        return None, errors

    stamp = now()
    cur = db.execute(
        'INSERT INTO users (name, username, email, password_hash, admin, created_at, updated_at) '
        'VALUES (?, ?, ?, ?, 0, ?, ?)',
        (name, username, email, generate_password_hash(form['password']), stamp, stamp))
    logger.info("User %s registered", username)
    return get_user(db, cur.lastrowid), {}


def _submitted(form, key, stored):
    value = form.get(key)
    return stored if value is None else value


def update_user(db, user, form, allow_admin=False):
    """
    Applies a profile edit. Blank password or email fields leave the stored
    values alone, and so do absent name or username fields. A name or
    username that is submitted must not be blank.
    """
    name = _submitted(form, 'name', user['name']).strip()
    username = _submitted(form, 'username', user['username']).strip()
    email = (form.get('email') or '').strip().lower()
    password = form.get('password') or ''

    checks = [
        string_is_present('name', name),
        string_is_present('username', username),
        column_available(db, 'username', 'users', 'username', username, exclude_id=user['id']),
    ]
    if password:
        checks.extend(_password_checks(form))
    if email:
        checks.append(email_like('email', email) or
                      column_available(db, 'email', 'users', 'email', email, exclude_id=user['id']))
    errors = validate(*checks)
    if errors:
        return errors

    password_hash = generate_password_hash(password) if password else user['password_hash']
    admin = user['admin']
    if allow_admin:
        admin = 1 if form.get('admin') in ('1', 'on', 'true') else 0
    db.execute(
        'UPDATE users SET name = ?, username = ?, email = ?, password_hash = ?, admin = ?, updated_at = ? '
        'WHERE id = ?',
        (name, username, email or user['email'], password_hash, admin, now(), user['id']))
    logger.info("User %s updated", user['id'])
    return {}


def delete_user(db, user_id):
    db.execute('DELETE FROM users WHERE id = ?', (user_id,))
    logger.info("User %s deleted", user_id)


def authorize(db, email, password):
    """Returns the user matching the email/password pair, or None."""
    email = (email or '').strip().lower()
    if not email or not password:
        return None
    row = db.execute('SELECT * FROM users WHERE email = ?', (email,)).fetchone()
    if row is None or not check_password_hash(row['password_hash'], password):
        return None
    return dict(row)


def oauth_user(db, provider, provider_id, name, nickname, email=None):
    """
    Finds the account linked to a provider identity, registering it on first
    login. Returns (user, created).
    """
    row = db.execute('SELECT * FROM users WHERE provider = ? AND provider_id = ?',
                     (provider, str(provider_id))).fetchone()
    if row:
        return dict(row), False

    username = nickname or f"{provider}{provider_id}"
    if db.execute('SELECT 1 FROM users WHERE username = ?', (username,)).fetchone():
        username = f"{username}{time.time_ns()}"
    email = (email or '').strip().lower() or None
    if email and db.execute('SELECT 1 FROM users WHERE email = ?', (email,)).fetchone():
        email = None

    stamp = now()
    # Provider accounts never log in with a password, the hash is unusable
    cur = db.execute(
        'INSERT INTO users (name, username, email, password_hash, admin, provider, provider_id, '
        'created_at, updated_at) VALUES (?, ?, ?, ?, 0, ?, ?, ?, ?)',
        (name or username, username, email, generate_password_hash(secrets.token_hex(32)),
         provider, str(provider_id), stamp, stamp))
    logger.info("User %s registered through %s", username, provider)
    return get_user(db, cur.lastrowid), True

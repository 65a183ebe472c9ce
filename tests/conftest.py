import io
import sqlite3

import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from config import TestConfig


@pytest.fixture
def app(tmp_path):
    app = create_app(TestConfig, {
        'DATABASE': str(tmp_path / 'test.db'),
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
    })
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    """A connection of its own, for arranging rows and checking results."""
    conn = sqlite3.connect(app.config['DATABASE'])
    conn.row_factory = sqlite3.Row
    yield conn
    conn.close()


@pytest.fixture
def make_user(db):
    counter = {'n': 0}

    def _make_user(admin=False, password='secret123', **fields):
        counter['n'] += 1
        n = counter['n']
        values = {
            'name': f'User {n}',
            'username': f'user{n}',
            'email': f'user{n}@example.com',
        }
        values.update(fields)
        cur = db.execute(
            "INSERT INTO users (name, username, email, password_hash, admin, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, '2024-01-01 00:00:00', '2024-01-01 00:00:00')",
            (values['name'], values['username'], values['email'], generate_password_hash(password),
             1 if admin else 0))
        db.commit()
        return dict(db.execute('SELECT * FROM users WHERE id = ?', (cur.lastrowid,)).fetchone())

    return _make_user


@pytest.fixture
def login(client):
    def _login(user):
        with client.session_transaction() as sess:
            sess['current_user_id'] = user['id']
    return _login


@pytest.fixture
def admin(make_user, login):
    user = make_user(admin=True, name='Admin', username='admin', email='admin@example.com')
    login(user)
    return user


def image(name='cat.png', data=b'\x89PNG fake image bytes'):
    return (io.BytesIO(data), name)


def flashes(client):
    with client.session_transaction() as sess:
        return sess.get('_flashes', [])

import logging
import sqlite3
from logging.handlers import RotatingFileHandler

from app import create_app
from config import TestConfig


def test_home_renders(client):
    resp = client.get('/')
    assert resp.status_code == 200
    assert b'Latest posts' in resp.data


def test_unknown_route_uses_404_page(client):
    resp = client.get('/no/such/page')
    assert resp.status_code == 404
    assert b'Page not found.' in resp.data


def test_infrastructure_failure_renders_generic_page(app, client):
    @app.route('/boom')
    def boom():
        raise sqlite3.OperationalError("disk I/O error")

    resp = client.get('/boom')
    assert resp.status_code == 500
    assert b'Something went wrong.' in resp.data
    assert b'disk I/O error' not in resp.data


def test_failed_request_rolls_back(app, client, db):
    from database import get_db

    @app.route('/half-write')
    def half_write():
        get_db().execute("INSERT INTO tags (name) VALUES ('halfway')")
        raise OSError("copy failed")

    assert client.get('/half-write').status_code == 500
    assert db.execute("SELECT COUNT(*) FROM tags").fetchone()[0] == 0


def test_admin_dashboard(client, admin):
    resp = client.get('/admin')
    assert resp.status_code == 200
    assert b'Users: 1' in resp.data


def test_admin_dashboard_refuses_anonymous(client):
    assert client.get('/admin').status_code == 302


def test_csrf_rejects_post_without_token(tmp_path):
    app = create_app(TestConfig, {'DATABASE': str(tmp_path / 'db.sqlite'),
                                  'UPLOAD_FOLDER': str(tmp_path / 'up'), 'CSRF_ENABLED': True})
    client = app.test_client()
    assert client.post('/login', data={'email': 'a@b.c', 'password': 'x'}).status_code == 403

    with client.session_transaction() as sess:
        sess['csrf'] = 'known-token'
    resp = client.post('/login', data={'email': 'a@b.c', 'password': 'x', 'csrf_token': 'known-token'})
    assert resp.status_code == 422


def test_force_ssl_redirects(tmp_path):
    app = create_app(TestConfig, {'DATABASE': str(tmp_path / 'db.sqlite'),
                                  'UPLOAD_FOLDER': str(tmp_path / 'up'), 'FORCE_SSL': True})
    client = app.test_client()
    resp = client.get('/posts/')
    assert resp.status_code == 301
    assert resp.headers['Location'].startswith('https://')
    assert client.get('/posts/', headers={'X-Forwarded-Proto': 'https'}).status_code == 200


def test_each_log_file_gets_its_own_handler(tmp_path):
    root = logging.getLogger()
    before = list(root.handlers)
    try:
        create_app(TestConfig, {'DATABASE': str(tmp_path / 'a.sqlite'), 'UPLOAD_FOLDER': str(tmp_path / 'up')})
        log_file = tmp_path / 'blog.log'
        for _ in range(2):
            create_app(TestConfig, {'DATABASE': str(tmp_path / 'b.sqlite'), 'UPLOAD_FOLDER': str(tmp_path / 'up'),
                                    'LOG_FILE': str(log_file)})
        file_handlers = [h for h in root.handlers
                         if isinstance(h, RotatingFileHandler) and h.baseFilename == str(log_file)]
        assert len(file_handlers) == 1

        logging.getLogger('blog.test').warning("written to the file")
        file_handlers[0].flush()
        assert "WARNING | blog.test | written to the file" in log_file.read_text(encoding='utf-8')
    finally:
        for handler in root.handlers[:]:
            if handler not in before:
                root.removeHandler(handler)
                handler.close()

import logging
import math
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime

from flask import current_app, g

logger = logging.getLogger(__name__)


def get_db():
    """
    Opens a new database connection if there is none yet for the
    current application context.
    """
    if 'db' not in g:
        # Increase timeout to 30s to prevent 'Database is locked' errors under load
        g.db = sqlite3.connect(current_app.config['DATABASE'], timeout=30)
        g.db.row_factory = sqlite3.Row
    return g.db


def close_db(exc=None):
    """Closes the connection; anything not committed by then is discarded."""
    db = g.pop('db', None)
    if db is not None:
        db.close()


def after_commit(callback):
    """Queues `callback` to run once the request's transaction has committed."""
    g.setdefault('after_commit', []).append(callback)


def finish_transaction(response):
    """
    Every request runs inside one transaction: commit it when the request
    succeeded (including 4xx answers, which never write), roll it back on 5xx.
    Callbacks queued with after_commit run only after a successful commit.
    """
    db = g.get('db')
    callbacks = g.pop('after_commit', [])
    if db is not None:
        if response.status_code < 500:
            db.commit()
            for callback in callbacks:
                callback()
        else:
            db.rollback()
    return response


def rollback_db():
    g.pop('after_commit', None)
    db = g.get('db')
    if db is not None:
        db.rollback()


def now():
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def init_db(path):
    """
    Initializes the database with the required schema.
    Safe to run on every startup, tables are only created when missing.
    """
    conn = sqlite3.connect(path)
    c = conn.cursor()

    # 1. USERS TABLE
    # email may be NULL for accounts registered through an OAuth provider.
    c.execute('''CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        username TEXT NOT NULL UNIQUE,
        email TEXT UNIQUE,
        password_hash TEXT NOT NULL,
        admin INTEGER NOT NULL DEFAULT 0,
        provider TEXT,
        provider_id TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )''')

    # 2. POSTS TABLE
    # file_name is the hashed name of the image under the upload folder.
    c.execute('''CREATE TABLE IF NOT EXISTS posts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        author_id INTEGER NOT NULL,
        file_name TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY(author_id) REFERENCES users(id)
    )''')
    c.execute('CREATE INDEX IF NOT EXISTS idx_posts_file_name ON posts(file_name)')

    # 3. TAGS TABLE
    # The unique name turns a concurrent double insert into an IntegrityError.
    c.execute('''CREATE TABLE IF NOT EXISTS tags (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE
    )''')

    # 4. POST <-> TAG ASSOCIATION
    c.execute('''CREATE TABLE IF NOT EXISTS tags_posts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        post_id INTEGER NOT NULL,
        tag_id INTEGER NOT NULL
    )''')
    c.execute('CREATE INDEX IF NOT EXISTS idx_tags_posts_post ON tags_posts(post_id)')

    # 5. COMMENTS TABLE
    c.execute('''CREATE TABLE IF NOT EXISTS comments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        content TEXT NOT NULL,
        author_id INTEGER NOT NULL,
        post_id INTEGER NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY(author_id) REFERENCES users(id),
        FOREIGN KEY(post_id) REFERENCES posts(id)
    )''')

    conn.commit()
    conn.close()
    logger.info("Database initialized at %s", path)


def init_app(app):
    init_db(app.config['DATABASE'])
    app.after_request(finish_transaction)
    app.teardown_appcontext(close_db)


# --- PAGINATION ---

@dataclass
class Paginator:
    page: int
    per_page: int
    total_entries: int
    items: list = field(default_factory=list)

    @property
    def total_pages(self):
        return max(1, math.ceil(self.total_entries / self.per_page))

    @property
    def has_prev(self):
        return self.page > 1

    @property
    def has_next(self):
        return self.page < self.total_pages


def _positive_int(value, default):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def page_params(args):
    """Reads 'page' and 'per_page' from the query string (defaults 1 and PER_PAGE)."""
    page = _positive_int(args.get('page'), 1)
    per_page = _positive_int(args.get('per_page'), current_app.config['PER_PAGE'])
    return page, min(per_page, current_app.config['MAX_PER_PAGE'])


def paginate(db, query, params=(), page=1, per_page=20):
    """
    Runs `query` with LIMIT/OFFSET for the requested page.
    The total comes from wrapping the same query in a COUNT(*).
    """
    total = db.execute(f'SELECT COUNT(*) FROM ({query})', params).fetchone()[0]
    rows = db.execute(f'{query} LIMIT ? OFFSET ?',
                      (*params, per_page, (page - 1) * per_page)).fetchall()
    return Paginator(page=page, per_page=per_page, total_entries=total, items=[dict(row) for row in rows])

import logging

from database import now
from form_validators import string_is_present, validate

logger = logging.getLogger(__name__)


def get_comment(db, comment_id):
    row = db.execute('SELECT * FROM comments WHERE id = ?', (comment_id,)).fetchone()
    return dict(row) if row else None


def can_modify(user, comment):
    """Only the author of a comment or an admin may edit or delete it."""
    return user is not None and (user['id'] == comment['author_id'] or bool(user['admin']))


def create_comment(db, post_id, author_id, content):
    errors = validate(string_is_present('content', content))
    if errors:
        return None, errors
    stamp = now()
    cur = db.execute(
        'INSERT INTO comments (content, author_id, post_id, created_at, updated_at) VALUES (?, ?, ?, ?, ?)',
        (content.strip(), author_id, post_id, stamp, stamp))
    return get_comment(db, cur.lastrowid), {}


def update_comment(db, comment, content):
    errors = validate(string_is_present('content', content))
    if errors:
        return errors
    db.execute('UPDATE comments SET content = ?, updated_at = ? WHERE id = ?',
               (content.strip(), now(), comment['id']))
    return {}


def delete_comment(db, comment):
    db.execute('DELETE FROM comments WHERE id = ?', (comment['id'],))
    logger.info("Comment %s deleted", comment['id'])

import logging
import re
import sqlite3

from form_validators import ValidationError

logger = logging.getLogger(__name__)

NON_ALNUM_RE = re.compile(r'[^A-Za-z0-9]+')


def normalize(raw):
    """Canonical tag name: latin letters and digits only, lower-cased."""
    return NON_ALNUM_RE.sub('', raw or '').lower()


def check_tag(name, raw):
    """A tag that was typed but normalizes to nothing is rejected."""
    if raw and raw.strip() and not normalize(raw):
        return ValidationError(name, "Tag must contain letters or digits.")
    return None


def find_tag(db, name):
    row = db.execute('SELECT * FROM tags WHERE name = ?', (name,)).fetchone()
    return dict(row) if row else None


def find_or_create(db, name):
    """
    Returns (tag, created) for the canonical `name`.
    When a concurrent request inserted the same name first, the unique
    constraint rejects our insert and the existing row is returned instead.
    """
    if not name:
        raise ValueError("tag name must not be empty")
    tag = find_tag(db, name)
    if tag:
        return tag, False
    try:
        cur = db.execute('INSERT INTO tags (name) VALUES (?)', (name,))
    except sqlite3.IntegrityError:
        tag = find_tag(db, name)
        if tag is None:
            raise
        return tag, False
    logger.info("Created tag %s", name)
    return {'id': cur.lastrowid, 'name': name}, True


def tag_for_post(db, post_id):
    row = db.execute('''
        SELECT t.* FROM tags_posts tp
        JOIN tags t ON t.id = tp.tag_id
        WHERE tp.post_id = ?
        ORDER BY tp.id
        LIMIT 1
    ''', (post_id,)).fetchone()
    return dict(row) if row else None


def associate(db, post_id, tag_id):
    """Points the post's single association row at `tag_id`, creating it when missing."""
    row = db.execute('SELECT id FROM tags_posts WHERE post_id = ? ORDER BY id LIMIT 1', (post_id,)).fetchone()
    if row:
        db.execute('UPDATE tags_posts SET tag_id = ? WHERE id = ?', (tag_id, row['id']))
    else:
        db.execute('INSERT INTO tags_posts (post_id, tag_id) VALUES (?, ?)', (post_id, tag_id))


def dissociate(db, post_id):
    db.execute('DELETE FROM tags_posts WHERE post_id = ?', (post_id,))


def delete_tag(db, tag_id):
    # Association rows are left in place
    db.execute('DELETE FROM tags WHERE id = ?', (tag_id,))

import logging
import sqlite3

from database import now
from models import tags
from models.uploads import ALLOWED_EXTENSIONS, allowed_image, hashed_name, reference_count
from form_validators import ValidationError, string_is_present, validate

logger = logging.getLogger(__name__)

# Every listing needs the author name and the (single) tag of each post.
POST_SELECT = '''
    SELECT p.*, u.name AS author_name, u.username AS author_username,
        (SELECT t.name FROM tags_posts tp JOIN tags t ON t.id = tp.tag_id
         WHERE tp.post_id = p.id ORDER BY tp.id LIMIT 1) AS tag_name
    FROM posts p
    LEFT JOIN users u ON u.id = p.author_id
'''


def has_image(image):
    """True when the form carried a file that was actually chosen."""
    return image is not None and bool(image.filename)


def check_image(name, image, allowed=ALLOWED_EXTENSIONS):
    if has_image(image) and not allowed_image(image.filename, allowed):
        return ValidationError(name, "Invalid selected file")
    return None


def post_errors(form, image, allowed):
    return validate(
        string_is_present('title', form.get('title')),
        string_is_present('content', form.get('content')),
        tags.check_tag('tag', form.get('tag')),
        check_image('image', image, allowed),
    )


def get_post(db, post_id):
    row = db.execute(POST_SELECT + ' WHERE p.id = ?', (post_id,)).fetchone()
    return dict(row) if row else None


def list_posts_query():
    return POST_SELECT + ' ORDER BY p.id DESC'


def tagged_posts_query():
    return POST_SELECT + '''
        WHERE p.id IN (SELECT post_id FROM tags_posts WHERE tag_id = ?)
        ORDER BY p.id DESC
    '''


def _save_image(store, image):
    """
    Copies the upload to disk before any row is written.
    Returns (file_name, fresh) where fresh means no file of that name existed
    before, so it may be discarded again if the database write fails.
    """
    file_name = hashed_name(image.filename)
    fresh = not store.exists(file_name)
    store.store(file_name, image.stream)
    return file_name, fresh


def _apply_tag(db, post_id, raw_tag, remove_when_empty):
    name = tags.normalize(raw_tag)
    if name:
        tag, _ = tags.find_or_create(db, name)
        tags.associate(db, post_id, tag['id'])
    elif remove_when_empty:
        tags.dissociate(db, post_id)


def create_post(db, store, author_id, form, image=None, allowed=ALLOWED_EXTENSIONS):
    """
    Validate, copy the image to disk, then write the row and its tag.
    Returns (post, errors); nothing is written when errors is non-empty.
    """
    errors = post_errors(form, image, allowed)
    if errors:
        return None, errors

    file_name, fresh = None, False
    if has_image(image):
        file_name, fresh = _save_image(store, image)

    try:
        stamp = now()
        cur = db.execute(
            'INSERT INTO posts (title, content, author_id, file_name, created_at, updated_at) '
            'VALUES (?, ?, ?, ?, ?, ?)',
            (form['title'].strip(), form['content'], author_id, file_name, stamp, stamp))
        post_id = cur.lastrowid
        _apply_tag(db, post_id, form.get('tag'), remove_when_empty=False)
    except sqlite3.Error:
        if fresh:
            store.discard(file_name)
        raise

    logger.info("Post %s created by user %s", post_id, author_id)
    return get_post(db, post_id), {}


def update_post(db, store, post, form, image=None, allowed=ALLOWED_EXTENSIONS):
    """
    Same ordering as create_post. A new image replaces the old one, which is
    removed from disk once no other post references it. An emptied tag field
    drops the association.
    """
    errors = post_errors(form, image, allowed)
    if errors:
        return errors

    old_file = post['file_name']
    file_name, fresh = old_file, False
    if has_image(image):
        file_name, fresh = _save_image(store, image)

    try:
        db.execute('UPDATE posts SET title = ?, content = ?, file_name = ?, updated_at = ? WHERE id = ?',
                   (form['title'].strip(), form['content'], file_name, now(), post['id']))
        _apply_tag(db, post['id'], form.get('tag'), remove_when_empty=True)
    except sqlite3.Error:
        if fresh:
            store.discard(file_name)
        raise

    if old_file and old_file != file_name:
        store.release(old_file, reference_count(db, old_file))

    logger.info("Post %s updated", post['id'])
    return {}


def delete_post(db, store, post):
    """
    Deletes the row, then the image if nothing else points at it. The count
    runs after the delete and inside the same transaction, so the post does
    not count itself and no concurrent writer can slip in between. With a
    deferred store the file is removed only after the transaction commits.
    """
    db.execute('DELETE FROM posts WHERE id = ?', (post['id'],))
    file_name = post['file_name']
    if file_name:
        store.release(file_name, reference_count(db, file_name))
    logger.info("Post %s deleted", post['id'])


def comments_for_post(db, post_id):
    rows = db.execute('''
        SELECT c.*, u.name AS author_name, u.username AS author_username
        FROM comments c
        LEFT JOIN users u ON u.id = c.author_id
        WHERE c.post_id = ?
        ORDER BY c.id ASC
    ''', (post_id,)).fetchall()
    return [dict(row) for row in rows]

import pytest

from conftest import flashes


@pytest.fixture
def post(db, make_user):
    author = make_user(admin=True)
    cur = db.execute("INSERT INTO posts (title, content, author_id, created_at, updated_at) "
                     "VALUES ('t', 'c', ?, 'now', 'now')", (author['id'],))
    db.commit()
    return {'id': cur.lastrowid}


def add_comment(db, post, author, content='hello'):
    cur = db.execute("INSERT INTO comments (content, author_id, post_id, created_at, updated_at) "
                     "VALUES (?, ?, ?, 'now', 'now')", (content, author['id'], post['id']))
    db.commit()
    return {'id': cur.lastrowid}


def comment_count(db):
    return db.execute('SELECT COUNT(*) FROM comments').fetchone()[0]


def test_create_requires_login(client, db, post):
    resp = client.post(f"/comments/create/{post['id']}", data={'content': 'hi'})
    assert resp.status_code == 302
    assert comment_count(db) == 0


def test_create_comment(client, db, post, make_user, login):
    user = make_user()
    login(user)
    resp = client.post(f"/comments/create/{post['id']}", data={'content': 'first!'})
    assert resp.status_code == 302
    assert resp.headers['Location'].endswith(f"/posts/detail/{post['id']}")
    row = db.execute('SELECT * FROM comments').fetchone()
    assert row['content'] == 'first!'
    assert row['author_id'] == user['id']


def test_empty_comment_flashes_danger(client, db, post, make_user, login):
    login(make_user())
    client.post(f"/comments/create/{post['id']}", data={'content': '  '})
    assert comment_count(db) == 0
    assert ('danger', "There was an error adding your comment.") in [tuple(f) for f in flashes(client)]


def test_comment_on_missing_post_is_404(client, make_user, login):
    login(make_user())
    assert client.post('/comments/create/999', data={'content': 'x'}).status_code == 404


def test_non_admin_cannot_delete_someone_elses_comment(client, db, post, make_user, login):
    owner = make_user()
    comment = add_comment(db, post, owner)
    login(make_user())
    resp = client.get(f"/comments/delete?cid={comment['id']}")
    assert resp.status_code == 302
    assert resp.headers['Location'].endswith(f"/posts/detail/{post['id']}")
    assert ('danger', "You are not authorized to view that page.") in [tuple(f) for f in flashes(client)]
    assert comment_count(db) == 1


def test_author_deletes_own_comment(client, db, post, make_user, login):
    owner = make_user()
    comment = add_comment(db, post, owner)
    login(owner)
    client.get(f"/comments/delete?cid={comment['id']}")
    assert comment_count(db) == 0


def test_admin_deletes_any_comment(client, db, post, make_user, admin):
    comment = add_comment(db, post, make_user())
    client.get(f"/comments/delete?cid={comment['id']}")
    assert comment_count(db) == 0


def test_edit_own_comment(client, db, post, make_user, login):
    owner = make_user()
    comment = add_comment(db, post, owner)
    login(owner)
    assert client.get(f"/comments/edit?cid={comment['id']}").status_code == 200
    resp = client.post(f"/comments/edit?cid={comment['id']}", data={'content': 'edited'})
    assert resp.status_code == 302
    assert db.execute('SELECT content FROM comments').fetchone()[0] == 'edited'


def test_edit_with_empty_content_is_422(client, db, post, make_user, login):
    owner = make_user()
    comment = add_comment(db, post, owner)
    login(owner)
    resp = client.post(f"/comments/edit?cid={comment['id']}", data={'content': ''})
    assert resp.status_code == 422
    assert db.execute('SELECT content FROM comments').fetchone()[0] == 'hello'


def test_cannot_edit_someone_elses_comment(client, db, post, make_user, login):
    comment = add_comment(db, post, make_user())
    login(make_user())
    client.post(f"/comments/edit?cid={comment['id']}", data={'content': 'hijacked'})
    assert db.execute('SELECT content FROM comments').fetchone()[0] == 'hello'


def test_unknown_comment_is_404(client, make_user, login):
    login(make_user())
    assert client.get('/comments/delete?cid=999').status_code == 404
    assert client.get('/comments/edit').status_code == 404

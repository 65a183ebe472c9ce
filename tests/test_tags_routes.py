import io

from models.uploads import hashed_name


def create(client, title, tag):
    return client.post('/posts/create', data={'title': title, 'content': 'c', 'tag': tag})


def test_tag_page_lists_only_tagged_posts(client, admin):
    create(client, 'about python', 'Python')
    create(client, 'about go', 'Go')
    resp = client.get('/tags/python')
    assert resp.status_code == 200
    assert b'about python' in resp.data
    assert b'about go' not in resp.data


def test_tag_lookup_normalizes(client, admin):
    create(client, 'x', 'Web Dev')
    assert client.get('/tags/WebDev').status_code == 200


def test_unknown_tag_is_404(client):
    assert client.get('/tags/nothing').status_code == 404


def test_tag_list(client, admin):
    create(client, 'x', 'alpha')
    resp = client.get('/tags/')
    assert resp.status_code == 200
    assert b'#alpha' in resp.data


def test_create_tag_is_find_or_create(client, db, admin):
    client.post('/tags/create', data={'name': 'Rust!'})
    client.post('/tags/create', data={'name': 'rust'})
    assert db.execute("SELECT COUNT(*) FROM tags WHERE name = 'rust'").fetchone()[0] == 1


def test_create_tag_rejects_symbols_only(client, db, admin):
    resp = client.post('/tags/create', data={'name': '***'})
    assert resp.status_code == 422
    assert db.execute('SELECT COUNT(*) FROM tags').fetchone()[0] == 0


def test_delete_tag_is_admin_only(client, db, admin, make_user, login):
    create(client, 'x', 'keep')
    login(make_user())
    client.post('/tags/keep/delete')
    assert db.execute("SELECT COUNT(*) FROM tags WHERE name = 'keep'").fetchone()[0] == 1


def test_admin_deletes_tag(client, db, admin):
    create(client, 'x', 'gone')
    client.post('/tags/gone/delete')
    assert db.execute("SELECT COUNT(*) FROM tags WHERE name = 'gone'").fetchone()[0] == 0
    assert db.execute('SELECT COUNT(*) FROM tags_posts').fetchone()[0] == 1

import pytest

from .client import ApiError, BookshelfClient, Session, SessionExpired, SessionStore


@pytest.fixture
def store(tmp_path):
    return SessionStore(tmp_path / "session.json")


@pytest.fixture
def api(client, store):
    return BookshelfClient(client, store)


def test_store_round_trip(store):
    assert store.load() is None
    store.save(Session(user={"id": 1, "username": "alice", "email": "a@x.com"}, token="t"))
    assert store.load() == Session(user={"id": 1, "username": "alice", "email": "a@x.com"}, token="t")
    store.clear()
    assert store.load() is None


def test_store_clear_without_file(store):
    store.clear()
    assert store.load() is None


def test_store_ignores_corrupt_file(store):
    store.path.write_text("{not json", encoding="utf-8")
    assert store.load() is None
    store.path.write_text('{"user": {"id": 1}}', encoding="utf-8")
    assert store.load() is None


def test_login_persists_session(api, store):
    api.register("alice", "a@x.com", "pw1")
    session = api.login("a@x.com", "pw1")

    assert session.user["username"] == "alice"
    assert store.load() == session
    assert api.current_user["email"] == "a@x.com"


def test_book_flow(api):
    api.register("alice", "a@x.com", "pw1")
    api.login("a@x.com", "pw1")

    book_id = api.add_book("Dune", "Herbert", published_year=1965)
    assert [b["id"] for b in api.list_books()] == [book_id]

    assert api.update_book(book_id, "Dune", "Frank Herbert") == "Book updated successfully!"
    assert api.list_books()[0]["author"] == "Frank Herbert"

    assert api.delete_book(book_id) == "Book deleted successfully!"
    assert api.list_books() == []


def test_server_message_is_surfaced(api):
    api.register("alice", "a@x.com", "pw1")
    with pytest.raises(ApiError) as excinfo:
        api.register("alice", "a@x.com", "pw1")
    assert excinfo.value.status_code == 409
    assert excinfo.value.message == "Username or Email already exists."


def test_rejected_token_clears_session(api, store):
    store.save(Session(user={"id": 1, "username": "alice", "email": "a@x.com"}, token="dead"))

    with pytest.raises(SessionExpired) as excinfo:
        api.list_books()
    assert excinfo.value.status_code == 403
    assert store.load() is None


def test_authenticated_call_without_session(api):
    with pytest.raises(SessionExpired):
        api.list_books()


def test_logout_clears_session(api, store):
    api.register("alice", "a@x.com", "pw1")
    api.login("a@x.com", "pw1")
    api.logout()
    assert store.load() is None
    assert api.current_user is None

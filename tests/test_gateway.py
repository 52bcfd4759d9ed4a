"""End-to-end tests for the Socket.IO event protocol."""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

from pymongo.errors import ServerSelectionTimeoutError

from quizzer import database
from quizzer.context import create_context
from quizzer.errors import GENERIC_FAILURE_REASON, LOGIN_FAILURE_REASON, StoreError
from quizzer.main import create_app, get_socketio


def _events(client):
    return [(packet["name"], packet["args"]) for packet in client.get_received()]


def _login(client, user_mail="admin@b.com", password="secret"):
    client.emit("userLogin", {"userMail": user_mail, "password": password})
    return _events(client)


def test_connection_counter_tracks_open_connections(app, context):
    socketio = get_socketio(app)
    first = socketio.test_client(app)
    second = socketio.test_client(app)
    assert context.connections.active_users == 2

    first.disconnect()
    assert context.connections.active_users == 1

    response = app.test_client().get("/api/health")
    assert response.get_json() == {"status": "ok", "activeUsers": 1, "quizSetVersion": "1.0.0"}

    second.disconnect()
    assert context.connections.active_users == 0


def test_admin_login_emits_privilege_notification(socket_client, register_user):
    register_user("admin@b.com", "secret", admin=True)

    events = _login(socket_client)

    assert [name for name, _ in events] == ["loginSuccess", "adminPrivilegeGranted"]
    payload = events[0][1][0]
    assert payload["success"] is True
    assert payload["userMail"] == "admin@b.com"
    assert payload["sessionId"]


def test_standard_login_has_no_privilege_notification(socket_client, register_user):
    register_user("user@b.com", "secret")

    events = _login(socket_client, "user@b.com")

    assert [name for name, _ in events] == ["loginSuccess"]


def test_failed_logins_are_indistinguishable(socket_client, register_user):
    register_user("user@b.com", "secret")

    wrong_password = _login(socket_client, "user@b.com", "nope")
    unknown_user = _login(socket_client, "ghost@b.com", "secret")

    assert wrong_password == unknown_user == [("loginUnsuccessful", [LOGIN_FAILURE_REASON])]


def test_invalid_email_is_reported(socket_client):
    assert _login(socket_client, "not-an-email") == [("loginUnsuccessful", ["Invalid UserMail"])]


def test_invalid_email_is_reported_without_other_fields(socket_client):
    socket_client.emit("userLogin", {"userMail": "bad"})
    socket_client.emit("userSignup", {"userMail": "bad"})

    assert _events(socket_client) == [
        ("loginUnsuccessful", ["Invalid UserMail"]),
        ("signupUnsuccessful", ["Invalid UserMail"]),
    ]


def test_malformed_login_payload_is_dropped(socket_client):
    socket_client.emit("userLogin", "admin@b.com")
    socket_client.emit("userLogin", {"userMail": "admin@b.com"})

    assert socket_client.get_received() == []


def test_session_id_login_and_expiry(app, context, register_user):
    register_user("user@b.com", "secret")
    socketio = get_socketio(app)

    first = socketio.test_client(app)
    session_id = _login(first, "user@b.com")[0][1][0]["sessionId"]

    second = socketio.test_client(app)
    second.emit("userLogin", {"userMail": "user@b.com", "sessionId": session_id})
    events = _events(second)
    assert events[0][0] == "loginSuccess"
    assert "sessionId" not in events[0][1][0]

    context.store.upsert_user("user@b.com", {"maxSessionTime": 0})
    second.emit("userLogin", {"userMail": "user@b.com", "sessionId": session_id})
    assert _events(second) == [("loginUnsuccessful", ["Session Expired"])]


def test_signup_then_login_before_verification(socket_client, mailer, context):
    socket_client.emit("userSignup", {"userMail": "a@b.com", "password": "p", "websiteURL": "http://x"})
    assert _events(socket_client) == [("signupSuccess", [])]
    user = context.store.get_user("a@b.com")
    assert user["isMailVerified"] is False
    assert "sessionIdHash" not in user

    events = _login(socket_client, "a@b.com", "p")
    assert events[0][0] == "loginSuccess"
    assert events[0][1][0]["isMailVerified"] is False

    token = parse_qs(urlparse(mailer.sent[0][1]).query)["jwtToken"][0]
    socket_client.emit("userVerification", {"jwtToken": token})
    assert _events(socket_client) == [("verificationSuccess", [])]
    assert context.store.get_user("a@b.com")["isMailVerified"] is True


def test_signup_for_verified_user_fails(socket_client, register_user):
    register_user("a@b.com", "secret", verified=True)

    socket_client.emit("userSignup", {"userMail": "a@b.com", "password": "p", "websiteURL": "http://x"})

    assert _events(socket_client) == [("signupUnsuccessful", ["UserMail already in use"])]


def test_signup_with_invalid_email_is_reported(socket_client):
    socket_client.emit("userSignup", {"userMail": "nope", "password": "p", "websiteURL": "http://x"})

    assert _events(socket_client) == [("signupUnsuccessful", ["Invalid UserMail"])]


def test_invalid_verification_token(socket_client):
    socket_client.emit("userVerification", {"jwtToken": "garbage"})
    socket_client.emit("userVerification", {})

    assert _events(socket_client) == [("verificationUnsuccessful", ["Invalid Verification Link"])]


def test_non_admin_cannot_add_words(socket_client, register_user, context, mongo_db):
    register_user("user@b.com", "secret")
    _login(socket_client, "user@b.com")

    socket_client.emit("addNewWord", {"collectionName": "Animals", "word": "cat", "meaning": "feline"})
    socket_client.emit("addWordsFromFile", {"collectionName": "Animals"})

    assert socket_client.get_received() == []
    assert mongo_db["Animals"].count_documents({}) == 0
    assert "Animals" not in context.cache.get_snapshot()


def test_anonymous_connection_cannot_add_words(socket_client, mongo_db):
    socket_client.emit("addNewWord", {"collectionName": "Animals", "word": "cat", "meaning": "feline"})

    assert socket_client.get_received() == []
    assert mongo_db["Animals"].count_documents({}) == 0


def test_admin_adds_word_and_snapshot_reflects_it(socket_client, register_user, mongo_db):
    register_user("admin@b.com", "secret", admin=True)
    _login(socket_client)

    socket_client.emit("addNewWord", {"collectionName": "Animals", "word": "cat", "meaning": "small,furry"})
    socket_client.emit("addNewWord", {"collectionName": "Animals", "word": "cat", "meaning": "a pet"})
    events = _events(socket_client)

    assert events == [
        ("addWordSuccess", [{"collectionName": "Animals", "word": "cat", "meaning": "small, furry"}]),
        ("addWordSuccess", [{"collectionName": "Animals", "word": "cat", "meaning": "small, furry / a pet"}]),
    ]
    assert mongo_db["Animals"].find_one({"word": "cat"})["meaning"] == "small, furry / a pet"

    socket_client.emit("sendLatestQuizSetVersion")
    socket_client.emit("sendQuizSet")
    assert _events(socket_client) == [
        ("latestQuizSetVersion", ["1.0.0"]),
        (
            "latestQuizSet",
            [{"quizSetVersion": "1.0.0", "quizSet": {"Animals": {"cat": "small, furry / a pet"}}}],
        ),
    ]


def test_malformed_word_payload_is_dropped(socket_client, register_user):
    register_user("admin@b.com", "secret", admin=True)
    _login(socket_client)

    socket_client.emit("addNewWord", {"collectionName": "Animals", "word": 7, "meaning": "seven"})

    assert socket_client.get_received() == []


def test_add_words_from_file(socket_client, register_user, context, tmp_path):
    register_user("admin@b.com", "secret", admin=True)
    _login(socket_client)
    (tmp_path / "words.txt").write_text(
        "# animals\nowl: a bird\nowl: a night person\nfox: clever\n",
        encoding="utf-8",
    )

    socket_client.emit("addWordsFromFile", {"collectionName": "Animals"})

    assert _events(socket_client) == [("addWordsFromFileSuccess", [{"collectionName": "Animals", "count": 3}])]
    assert context.cache.get_snapshot()["Animals"] == {"owl": "a bird / a night person", "fox": "clever"}


def test_add_words_from_missing_file_fails(socket_client, register_user):
    register_user("admin@b.com", "secret", admin=True)
    _login(socket_client)

    socket_client.emit("addWordsFromFile", {"collectionName": "Animals"})

    assert _events(socket_client) == [("addWordsFromFileUnsuccessful", [])]


def test_disconnect_logs_out(app, context, register_user):
    register_user("admin@b.com", "secret", admin=True)
    client = get_socketio(app).test_client(app)
    _login(client)
    assert context.connections.active_users == 1

    client.disconnect()

    assert context.connections.active_users == 0


def test_degraded_mode_serves_empty_cache(monkeypatch, mailer):
    def _unreachable():
        raise ServerSelectionTimeoutError("no servers")

    monkeypatch.setattr(database, "get_database", _unreachable)
    context = create_context(mailer=mailer)
    app = create_app(context)
    client = get_socketio(app).test_client(app)

    client.emit("sendQuizSet")
    assert _events(client) == [("latestQuizSet", [{"quizSetVersion": "0.0.0", "quizSet": {}}])]

    client.emit("userLogin", {"userMail": "a@b.com", "password": "p"})
    assert _events(client) == [("loginUnsuccessful", [GENERIC_FAILURE_REASON])]

    assert app.test_client().get("/api/health").get_json()["status"] == "degraded"
    client.disconnect()


def _reject_writes(monkeypatch, context):
    def _reject(*args, **kwargs):
        raise StoreError("write rejected")

    monkeypatch.setattr(context.store, "upsert_word", _reject)


def test_store_failure_on_add_word_is_reported(socket_client, register_user, context, monkeypatch):
    register_user("admin@b.com", "secret", admin=True)
    _login(socket_client)
    context.cache.insert_word("Animals", "cat", "a pet")
    _reject_writes(monkeypatch, context)

    payload = {"collectionName": "Animals", "word": "cat", "meaning": "a feline"}
    socket_client.emit("addNewWord", payload)

    assert _events(socket_client) == [("addWordUnsuccessful", [payload])]
    assert context.cache.get_snapshot()["Animals"] == {"cat": "a pet"}


def test_store_failure_on_add_words_from_file_is_reported(
    socket_client, register_user, context, monkeypatch, tmp_path
):
    register_user("admin@b.com", "secret", admin=True)
    _login(socket_client)
    (tmp_path / "words.txt").write_text("owl: a bird\n", encoding="utf-8")
    _reject_writes(monkeypatch, context)

    socket_client.emit("addWordsFromFile", {"collectionName": "Birds"})

    assert _events(socket_client) == [("addWordsFromFileUnsuccessful", [])]
    assert context.cache.get_snapshot().get("Birds", {}) == {}


def test_reserved_collection_names_are_dropped(socket_client, register_user, context, mongo_db, tmp_path):
    register_user("admin@b.com", "secret", admin=True)
    _login(socket_client)
    (tmp_path / "words.txt").write_text("x: y\n", encoding="utf-8")

    socket_client.emit("addNewWord", {"collectionName": "_Root", "word": "x", "meaning": "y"})
    socket_client.emit("addNewWord", {"collectionName": "UserBase", "word": "x", "meaning": "y"})
    socket_client.emit("addWordsFromFile", {"collectionName": "AdminBase"})

    assert socket_client.get_received() == []
    assert mongo_db["_Root"].count_documents({"word": {"$exists": True}}) == 0
    assert mongo_db["UserBase"].count_documents({"word": {"$exists": True}}) == 0
    assert "_Root" not in context.cache.get_snapshot()

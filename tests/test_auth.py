from datetime import timedelta

from flask_jwt_extended import create_access_token

from auth import hash_password, verify_password


def test_register_returns_token(client):
    resp = client.post("/api/auth/register", json={"username": "  alice ", "password": "pw1"})
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["username"] == "alice"
    assert body["id"] and body["token"]


def test_register_duplicate_username(client, register):
    register("alice")
    resp = client.post("/api/auth/register", json={"username": "alice", "password": "other"})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Username already exists"}


def test_register_validation_error_has_fields(client):
    resp = client.post("/api/auth/register", json={"username": "", "password": "x"})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "Invalid request"
    assert [f["field"] for f in body["fields"]] == ["username"]


def test_register_without_body(client):
    resp = client.post("/api/auth/register", data="not json", content_type="text/plain")
    assert resp.status_code == 400
    fields = {f["field"] for f in resp.get_json()["fields"]}
    assert fields == {"username", "password"}


def test_login_and_me(client, register):
    _, created = register("bob", "secret")
    resp = client.post("/api/auth/login", json={"username": "bob", "password": "secret"})
    assert resp.status_code == 200
    token = resp.get_json()["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.get_json() == {"id": created["id"], "username": "bob"}


def test_login_wrong_password_and_unknown_user_look_the_same(client, register):
    register("bob", "secret")
    wrong = client.post("/api/auth/login", json={"username": "bob", "password": "nope"})
    unknown = client.post("/api/auth/login", json={"username": "carol", "password": "nope"})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.get_json() == unknown.get_json() == {"error": "Invalid credentials"}


def test_password_is_hashed(store, register):
    _, created = register("bob", "secret")
    stored = store.get_user(created["id"])
    assert stored["password_hash"] != "secret"
    assert verify_password("secret", stored["password_hash"])


def test_verify_password_rejects_garbage_hash():
    assert verify_password("pw", "not-a-hash") is False
    assert verify_password("pw", hash_password("pw")) is True


def test_protected_route_rejects_missing_invalid_and_expired_tokens(app, client, register):
    _, created = register()
    with app.app_context():
        expired = create_access_token(identity=created["id"], expires_delta=timedelta(seconds=-1))

    for headers in ({}, {"Authorization": "Bearer garbage"}, {"Authorization": f"Bearer {expired}"}):
        resp = client.get("/api/auth/me", headers=headers)
        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Unauthorized"}


def test_health_with_optional_auth(client, auth_headers):
    anon = client.get("/api/health").get_json()
    assert anon == {"status": "ok", "authenticated": False, "user_id": None}

    authed = client.get("/api/health", headers=auth_headers).get_json()
    assert authed["authenticated"] is True
    assert authed["user_id"]


def test_health_ignores_bad_token(client):
    resp = client.get("/api/health", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 200
    assert resp.get_json()["authenticated"] is False


def test_unknown_route_is_json_404(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert "error" in resp.get_json()

from agenda.config import SESSION_COOKIE_NAME

from helpers import register


def test_register_sets_session_cookie(client, email):
    response = client.post(
        "/api/auth/register",
        json={"email": "Ana@Example.com", "password": "password123", "name": "Ana"},
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["user"]["email"] == "ana@example.com"
    assert body["user"]["emailVerified"] is False
    assert body["verificationSent"] is True
    assert "passwordHash" not in body["user"]
    assert SESSION_COOKIE_NAME in response.cookies
    assert email.last_code("ana@example.com") is not None

    me = client.get("/api/auth/user")
    assert me.status_code == 200
    assert me.json()["id"] == body["user"]["id"]


def test_register_duplicate_email(client):
    register(client, email="ana@example.com")
    response = client.post(
        "/api/auth/register",
        json={"email": "ANA@example.com", "password": "password123", "name": "Ana"},
    )
    assert response.status_code == 409
    assert response.json()["code"] == "Conflict"


def test_register_rejects_unknown_fields_and_short_password(client):
    response = client.post(
        "/api/auth/register",
        json={"email": "ana@example.com", "password": "password123", "name": "Ana", "role": "admin"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "ValidationError"

    response = client.post("/api/auth/register", json={"email": "ana@example.com", "password": "short", "name": "Ana"})
    assert response.status_code == 400


def test_login(client_factory):
    register(client_factory(), email="ana@example.com", password="password123")
    client = client_factory()

    bad = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "wrong-password"})
    assert bad.status_code == 401
    assert bad.json() == {"detail": "Invalid credentials", "code": "Unauthorized"}

    unknown = client.post("/api/auth/login", json={"email": "bob@example.com", "password": "password123"})
    assert unknown.status_code == 401

    good = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "password123"})
    assert good.status_code == 200
    assert client.get("/api/auth/user").status_code == 200


def test_logout_ends_session(client):
    register(client)
    assert client.get("/api/auth/user").status_code == 200

    response = client.post("/api/auth/logout")
    assert response.status_code == 200

    assert client.get("/api/auth/user").status_code == 401


def test_forged_cookie_is_rejected(client):
    client.cookies.set(SESSION_COOKIE_NAME, "not-a-token")
    response = client.get("/api/auth/user")
    assert response.status_code == 401
    assert response.json()["code"] == "Unauthorized"


def test_verify_email_flow(client, email):
    user = register(client, email="ana@example.com")
    code = email.last_code("ana@example.com")

    wrong = client.post("/api/auth/verify-email", json={"email": "ana@example.com", "code": "ZZZZZZ"})
    assert wrong.status_code == 400
    assert wrong.json()["code"] == "VerificationFailed"
    assert wrong.json()["reason"] == "mismatch"

    ok = client.post("/api/auth/verify-email", json={"email": "ana@example.com", "code": code})
    assert ok.status_code == 200, ok.text
    assert ok.json()["userId"] == user["id"]
    assert client.get("/api/auth/user").json()["emailVerified"] is True

    again = client.post("/api/auth/verify-email", json={"email": "ana@example.com", "code": code})
    assert again.status_code == 400
    assert again.json()["reason"] == "already_used"


def test_verify_unknown_email(client):
    response = client.post("/api/auth/verify-email", json={"email": "nobody@example.com", "code": "ABC123"})
    assert response.status_code == 400
    assert response.json()["reason"] == "not_found"


def test_resend_verification(client, email):
    user = register(client, email="ana@example.com")
    first = email.last_code("ana@example.com")

    response = client.post(
        "/api/auth/resend-verification",
        json={"userId": user["id"], "email": "ana@example.com", "name": "Ana"},
    )
    assert response.status_code == 200, response.text
    second = email.last_code("ana@example.com")
    assert len([m for m in email.sent if m["to"] == "ana@example.com"]) == 2

    assert client.post("/api/auth/verify-email", json={"email": "ana@example.com", "code": second}).status_code == 200
    if first != second:
        stale = client.post("/api/auth/verify-email", json={"email": "ana@example.com", "code": first})
        assert stale.status_code == 400

    verified = client.post(
        "/api/auth/resend-verification",
        json={"userId": user["id"], "email": "ana@example.com", "name": "Ana"},
    )
    assert verified.status_code == 409


def test_resend_verification_wrong_user(client):
    user = register(client, email="ana@example.com")
    response = client.post(
        "/api/auth/resend-verification",
        json={"userId": user["id"], "email": "other@example.com", "name": "Ana"},
    )
    assert response.status_code == 404


def test_resend_verification_send_failure(client, email):
    user = register(client, email="ana@example.com")
    email.fail = True
    response = client.post(
        "/api/auth/resend-verification",
        json={"userId": user["id"], "email": "ana@example.com", "name": "Ana"},
    )
    assert response.status_code == 500
    assert response.json()["code"] == "InternalError"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}

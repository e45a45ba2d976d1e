import pytest

import settings
from auth_helper import compare_password

REGISTER_BODY = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "password": "secret123",
    "phone": "91234567",
    "address": {"street": "1 Main St", "city": "Singapore"},
    "answer": "football",
}


# ----------------------- register -----------------------
@pytest.mark.parametrize(
    "missing, message",
    [
        ("name", "Name is Required"),
        ("email", "Email is Required"),
        ("password", "Password is Required"),
        ("phone", "Phone no is Required"),
        ("address", "Address is Required"),
        ("answer", "Answer is Required"),
    ],
)
def test_register_reports_missing_field(client, db, missing, message):
    body = {k: v for k, v in REGISTER_BODY.items() if k != missing}
    resp = client.post("/api/v1/auth/register", json=body)
    assert resp.status_code == 200
    assert resp.json() == {"message": message}
    assert db["user"].count_documents({}) == 0


def test_register_reports_only_first_missing_field(client):
    resp = client.post("/api/v1/auth/register", json={"phone": "1"})
    assert resp.json() == {"message": "Name is Required"}


def test_register_creates_user(client, db):
    resp = client.post("/api/v1/auth/register", json=REGISTER_BODY)
    assert resp.status_code == 201
    data = resp.json()
    assert data["success"] is True
    assert data["message"] == "User Register Successfully"
    assert data["user"]["email"] == "jane@example.com"
    assert data["user"]["role"] == 0
    assert "password" not in data["user"]
    assert "answer" not in data["user"]

    stored = db["user"].find_one({"email": "jane@example.com"})
    assert stored["password"] != "secret123"
    assert compare_password("secret123", stored["password"])
    assert stored["address"] == REGISTER_BODY["address"]


def test_register_trims_name(client, db):
    client.post("/api/v1/auth/register", json={**REGISTER_BODY, "name": "  Jane  "})
    assert db["user"].find_one({"email": "jane@example.com"})["name"] == "Jane"


def test_register_duplicate_email(client, db, make_user):
    make_user(email="jane@example.com")
    resp = client.post("/api/v1/auth/register", json=REGISTER_BODY)
    assert resp.status_code == 200
    assert resp.json() == {"success": False, "message": "Already Register please login"}
    assert db["user"].count_documents({}) == 1


def test_register_invalid_email(client, db):
    resp = client.post("/api/v1/auth/register", json={**REGISTER_BODY, "email": "not-an-email"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid email"
    assert db["user"].count_documents({}) == 0


# ----------------------- login -----------------------
def test_login_missing_email(client):
    resp = client.post("/api/v1/auth/login", json={"password": "x"})
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Invalid email or password"}


def test_login_unknown_email(client):
    resp = client.post("/api/v1/auth/login", json={"email": "nobody@example.com", "password": "x"})
    assert resp.status_code == 404
    assert resp.json()["message"] == "Email is not registered"


def test_login_wrong_password(client, make_user):
    make_user(email="jane@example.com", password="secret123")
    resp = client.post("/api/v1/auth/login", json={"email": "jane@example.com", "password": "wrong"})
    assert resp.status_code == 200
    assert resp.json() == {"success": False, "message": "Invalid Password"}


def test_login_success_returns_token_and_public_user(client, make_user, tokens):
    user = make_user(email="jane@example.com", password="secret123")
    resp = client.post("/api/v1/auth/login", json={"email": "jane@example.com", "password": "secret123"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["user"]["_id"] == str(user["_id"])
    assert data["user"]["email"] == "jane@example.com"
    assert "password" not in data["user"]
    assert tokens.verify(data["token"]) == str(user["_id"])


def test_login_token_opens_protected_route(client, make_user):
    make_user(email="jane@example.com", password="secret123")
    token = client.post(
        "/api/v1/auth/login", json={"email": "jane@example.com", "password": "secret123"}
    ).json()["token"]
    assert client.get("/api/v1/auth/user-auth", headers={"Authorization": token}).status_code == 200


def test_login_generic_errors_hide_which_part_failed(client, make_user, monkeypatch):
    monkeypatch.setattr(settings, "GENERIC_LOGIN_ERRORS", True)
    make_user(email="jane@example.com", password="secret123")

    unknown = client.post("/api/v1/auth/login", json={"email": "nobody@example.com", "password": "x"})
    wrong = client.post("/api/v1/auth/login", json={"email": "jane@example.com", "password": "x"})
    assert unknown.status_code == wrong.status_code == 404
    assert unknown.json() == wrong.json() == {"success": False, "message": "Invalid email or password"}


# ----------------------- forgot password -----------------------
@pytest.mark.parametrize(
    "body, message",
    [
        ({"answer": "blue", "newPassword": "newpass1"}, "Email is required"),
        ({"email": "jane@example.com", "newPassword": "newpass1"}, "Answer is required"),
        ({"email": "jane@example.com", "answer": "blue"}, "New Password is required"),
    ],
)
def test_forgot_password_required_fields(client, body, message):
    resp = client.post("/api/v1/auth/forgot-password", json=body)
    assert resp.status_code == 400
    assert resp.json()["message"] == message


def test_forgot_password_wrong_answer(client, make_user):
    make_user(email="jane@example.com", answer="blue")
    resp = client.post(
        "/api/v1/auth/forgot-password",
        json={"email": "jane@example.com", "answer": "red", "newPassword": "newpass1"},
    )
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Wrong Email Or Answer"}


def test_forgot_password_unknown_email_same_message(client):
    resp = client.post(
        "/api/v1/auth/forgot-password",
        json={"email": "nobody@example.com", "answer": "blue", "newPassword": "newpass1"},
    )
    assert resp.status_code == 404
    assert resp.json()["message"] == "Wrong Email Or Answer"


def test_forgot_password_resets_password(client, db, make_user):
    user = make_user(email="jane@example.com", answer="blue", password="oldpass1")
    resp = client.post(
        "/api/v1/auth/forgot-password",
        json={"email": "jane@example.com", "answer": "blue", "newPassword": "newpass1"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Password Reset Successfully"}

    stored = db["user"].find_one({"_id": user["_id"]})
    assert compare_password("newpass1", stored["password"])
    assert not compare_password("oldpass1", stored["password"])


# ----------------------- body types -----------------------
def test_register_accepts_numeric_phone(client, db):
    resp = client.post("/api/v1/auth/register", json={**REGISTER_BODY, "phone": 91234567})
    assert resp.status_code == 201
    assert db["user"].find_one({"email": "jane@example.com"})["phone"] == "91234567"


def test_register_wrong_type_uses_error_body(client, db):
    resp = client.post("/api/v1/auth/register", json={**REGISTER_BODY, "answer": {"pet": "cat"}})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Invalid answer"
    assert "detail" not in body
    assert db["user"].count_documents({}) == 0


@pytest.mark.parametrize("body", [{"email": 5, "password": "x"}, {"email": "jane@example.com", "password": ["x"]}])
def test_login_non_string_credentials(client, make_user, body):
    make_user(email="jane@example.com")
    resp = client.post("/api/v1/auth/login", json=body)
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Invalid email or password"}


def test_malformed_json_uses_error_body(client):
    resp = client.post(
        "/api/v1/auth/forgot-password",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert resp.json()["message"] == "Invalid body"

"""Tests for registration, login and the one-time free credit grant."""
from vig.services.email_service import email_service

DEFAULT_PASSWORD = "secret123"


async def register(client, email="new@example.com", name="Ada Lovelace", password="secret123"):
    return await client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )


async def login(client, email, password=DEFAULT_PASSWORD):
    return await client.post("/api/auth/login", json={"email": email, "password": password})


async def test_register_seeds_four_points_and_sets_flag(client):
    """New accounts start with the signup bonus already marked as received."""
    response = await register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["accessToken"]
    assert body["user"]["points"] == 4
    assert body["user"]["hasReceivedFreeCredits"] is True
    assert body["user"]["username"] == "new"
    assert body["user"]["firstName"] == "Ada"
    assert body["user"]["lastName"] == "Lovelace"


async def test_register_then_login_does_not_grant_again(client):
    await register(client, email="twice@example.com")

    response = await login(client, "twice@example.com", "secret123")

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["points"] == 4
    assert body["freeCreditsGranted"] is False


async def test_duplicate_registration_conflicts(client):
    await register(client, email="dup@example.com")

    response = await register(client, email="dup@example.com")

    assert response.status_code == 409
    assert response.json()["errorType"] == "conflict"


async def test_register_rejects_short_password_with_400(client):
    response = await register(client, password="123")

    assert response.status_code == 400


async def test_login_with_wrong_password(client, make_user):
    await make_user(email="someone@example.com")

    response = await login(client, "someone@example.com", "wrong-password")

    assert response.status_code == 401


async def test_grandfathered_user_gets_grant_on_first_login_only(client, make_user, points_of):
    user_id = await make_user(email="old@example.com", points=0, has_received_free_credits=False)

    first = await login(client, "old@example.com")
    second = await login(client, "old@example.com")

    assert first.json()["freeCreditsGranted"] is True
    assert first.json()["user"]["points"] == 4
    assert second.json()["freeCreditsGranted"] is False
    assert await points_of(user_id) == 4


async def test_free_credit_endpoint_then_login_grants_once(client, make_user, auth_headers, points_of):
    user_id = await make_user(email="legacy@example.com", points=1, has_received_free_credits=False)

    claim = await client.post("/api/auth/free-credits", headers=auth_headers(user_id))
    await login(client, "legacy@example.com")

    assert claim.status_code == 200
    assert claim.json() == {
        "message": "4 free credits added to your account",
        "pointsAdded": 4,
        "totalPoints": 5,
    }
    assert await points_of(user_id) == 5


async def test_free_credit_endpoint_after_login_grant_is_rejected(client, make_user, auth_headers, points_of):
    user_id = await make_user(email="legacy2@example.com", points=0, has_received_free_credits=False)
    await login(client, "legacy2@example.com")

    response = await client.post("/api/auth/free-credits", headers=auth_headers(user_id))

    assert response.status_code == 400
    assert await points_of(user_id) == 4


async def test_profile_update_rejects_email_in_use(client, make_user, auth_headers):
    await make_user(email="taken@example.com")
    user_id = await make_user(email="mover@example.com")

    response = await client.put(
        "/api/auth/profile",
        json={"email": "taken@example.com"},
        headers=auth_headers(user_id),
    )

    assert response.status_code == 409


async def test_profile_update_changes_name(client, make_user, auth_headers):
    user_id = await make_user(email="named@example.com")

    response = await client.put(
        "/api/auth/profile",
        json={"firstName": "Grace", "lastName": "Hopper"},
        headers=auth_headers(user_id),
    )

    assert response.status_code == 200
    assert response.json()["firstName"] == "Grace"
    assert response.json()["lastName"] == "Hopper"


async def test_profile_requires_token(client):
    response = await client.get("/api/auth/profile")

    assert response.status_code == 401


async def test_password_reset_flow(client, make_user, caplog):
    await make_user(email="forgetful@example.com")

    with caplog.at_level("DEBUG", logger="vig.services.email_service"):
        response = await client.post("/api/auth/forgot-password", json={"email": "forgetful@example.com"})
    assert response.status_code == 200

    token_records = [r for r in caplog.records if "reset-password?token=" in r.getMessage()]
    assert token_records
    assert all(r.levelname == "DEBUG" for r in token_records)
    reset_line = token_records[0].getMessage()
    token = reset_line.split("reset-password?token=")[1].split()[0]

    reset = await client.post("/api/auth/reset-password", json={"token": token, "password": "brand-new-pw"})
    reused = await client.post("/api/auth/reset-password", json={"token": token, "password": "another-pw"})
    relogin = await login(client, "forgetful@example.com", "brand-new-pw")

    assert reset.status_code == 200
    assert reused.status_code == 400
    assert relogin.status_code == 200


async def test_forgot_password_does_not_reveal_unknown_email(client):
    response = await client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})

    assert response.status_code == 200
    assert "If an account" in response.json()["message"]


async def test_welcome_email_failure_does_not_fail_registration(client, monkeypatch, points_of):
    async def broken_send(email, name):
        raise RuntimeError("SMTP down")

    monkeypatch.setattr(email_service, "send_welcome_email", broken_send)

    response = await register(client, email="unlucky@example.com")

    assert response.status_code == 201
    assert response.json()["user"]["points"] == 4
    assert await points_of(response.json()["user"]["id"]) == 4

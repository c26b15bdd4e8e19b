from mywork.core.config import settings
from mywork.core.rate_limit import LoginRateLimiter


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _register(client, *, email: str = "admin@example.com", password: str = "admin12345") -> dict:
    res = client.post(
        "/users",
        json={"email": email, "name": "Admin", "role": "admin", "password": password},
    )
    assert res.status_code in {200, 201}, res.text
    return res.json()


def _login(client, *, email: str = "admin@example.com", password: str = "admin12345"):
    return client.post("/auth/login", json={"email": email, "password": password})


def test_users_find_or_create_by_email(test_context):
    client, _ = test_context

    created = client.post(
        "/users",
        json={"email": "John@Example.com", "name": "John Smith", "phone": "(412) 555-0123"},
    )
    assert created.status_code == 201, created.text
    user = created.json()
    assert user["email"] == "john@example.com"
    assert user["role"] == "user"
    assert user["hasPassword"] is False

    found = client.post("/users", json={"email": "john@example.com", "name": "Someone Else"})
    assert found.status_code == 200
    assert found.json()["id"] == user["id"]
    assert found.json()["name"] == "John Smith"

    invalid = client.post("/users", json={"email": "not-an-email"})
    assert invalid.status_code == 400
    assert invalid.json()["error"]["code"] == "validation_error"


def test_users_list_filters_by_role_and_sorts_by_name(test_context, make_user):
    client, _ = test_context
    make_user(email="zed@example.com", name="Zed")
    make_user(email="amy@example.com", name="Amy")
    make_user(email="boss@example.com", name="Boss", role="admin")

    everyone = client.get("/users").json()
    assert [user["name"] for user in everyone] == ["Amy", "Boss", "Zed"]

    workers = client.get("/users", params={"role": "user"}).json()
    assert [user["name"] for user in workers] == ["Amy", "Zed"]

    assert client.get("/users", params={"role": "owner"}).status_code == 400


def test_login_me_refresh_and_logout(test_context):
    client, _ = test_context
    admin = _register(client)

    login = _login(client)
    assert login.status_code == 200, login.text
    tokens = login.json()
    assert tokens["tokenType"] == "bearer"

    me = client.get("/auth/me", headers=_auth_headers(tokens["accessToken"]))
    assert me.status_code == 200
    assert me.json()["id"] == admin["id"]
    assert me.json()["role"] == "admin"
    assert me.json()["hasPassword"] is True

    refreshed = client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert refreshed.status_code == 200
    new_tokens = refreshed.json()

    replay = client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert replay.status_code == 401

    logout = client.post("/auth/logout", json={"refreshToken": new_tokens["refreshToken"]})
    assert logout.json() == {"ok": True}
    after_logout = client.post("/auth/refresh", json={"refreshToken": new_tokens["refreshToken"]})
    assert after_logout.status_code == 401

    assert client.post("/auth/logout", json={"refreshToken": "garbage"}).json() == {"ok": True}


def test_me_requires_valid_access_token(test_context):
    client, _ = test_context
    _register(client)
    tokens = _login(client).json()

    assert client.get("/auth/me").status_code == 401
    wrong_type = client.get("/auth/me", headers=_auth_headers(tokens["refreshToken"]))
    assert wrong_type.status_code == 401
    assert wrong_type.json()["error"]["code"] == "unauthorized"


def test_login_rejects_bad_credentials(test_context):
    client, _ = test_context
    _register(client)

    res = _login(client, password="wrong-password")
    assert res.status_code == 401
    assert res.json()["error"]["message"] == "Invalid credentials"
    assert _login(client, email="nobody@example.com").status_code == 401


def test_login_rate_limited_after_repeated_failures(test_context):
    client, _ = test_context
    _register(client)

    for _ in range(settings.auth_rate_limit_max_attempts):
        assert _login(client, password="wrong-password").status_code == 401

    blocked = _login(client)
    assert blocked.status_code == 429
    assert int(blocked.headers["Retry-After"]) > 0
    assert blocked.json()["error"]["code"] == "rate_limited"


def test_change_password_requires_current_and_revokes_sessions(test_context):
    client, _ = test_context
    _register(client)
    tokens = _login(client).json()
    headers = _auth_headers(tokens["accessToken"])

    missing_current = client.post("/auth/password", json={"newPassword": "new-password-456"}, headers=headers)
    assert missing_current.status_code == 401

    same = client.post(
        "/auth/password",
        json={"currentPassword": "admin12345", "newPassword": "admin12345"},
        headers=headers,
    )
    assert same.status_code == 400

    too_short = client.post(
        "/auth/password",
        json={"currentPassword": "admin12345", "newPassword": "short"},
        headers=headers,
    )
    assert too_short.status_code == 400

    changed = client.post(
        "/auth/password",
        json={"currentPassword": "admin12345", "newPassword": "new-password-456"},
        headers=headers,
    )
    assert changed.status_code == 200
    assert client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]}).status_code == 401
    assert _login(client, password="admin12345").status_code == 401
    assert _login(client, password="new-password-456").status_code == 200


def test_passwords_longer_than_bcrypt_limit_are_rejected(test_context):
    client, _ = test_context

    too_long = client.post(
        "/users",
        json={"email": "long@example.com", "name": "Long", "password": "p" * 80},
    )
    assert too_long.status_code == 400
    assert too_long.json()["error"]["code"] == "validation_error"

    # Multi-byte characters count by their encoded size.
    wide = client.post(
        "/users",
        json={"email": "wide@example.com", "name": "Wide", "password": "é" * 40},
    )
    assert wide.status_code == 400

    _register(client)
    tokens = _login(client).json()
    change = client.post(
        "/auth/password",
        json={"currentPassword": "admin12345", "newPassword": "n" * 73},
        headers=_auth_headers(tokens["accessToken"]),
    )
    assert change.status_code == 400
    assert change.json()["error"]["code"] == "validation_error"

    assert _login(client, password="x" * 100).status_code == 401


def test_rate_limiter_forgets_idle_keys():
    now = [1000.0]
    limiter = LoginRateLimiter(max_attempts=2, window_seconds=60, lock_seconds=300, clock=lambda: now[0])

    for index in range(50):
        limiter.register_failure(f"user{index}@example.com:10.0.0.1")
    limiter.register_failure("target@example.com:10.0.0.2")
    limiter.register_failure("target@example.com:10.0.0.2")
    assert len(limiter) == 51
    assert limiter.check("target@example.com:10.0.0.2") == 301

    now[0] += 61
    assert limiter.check("user0@example.com:10.0.0.1") == 0
    assert len(limiter) == 1
    assert limiter.check("target@example.com:10.0.0.2") > 0

    now[0] += 300
    assert limiter.check("target@example.com:10.0.0.2") == 0
    now[0] += 61
    limiter.check("anyone@example.com:10.0.0.3")
    assert len(limiter) == 0

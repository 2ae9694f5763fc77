def _login(client, username="springfield_admin", password="secret-pass"):
    return client.post("/auth/login", json={"username": username, "password": password})


def test_login_returns_token_and_user(client, school_data):
    response = _login(client)
    assert response.status_code == 200
    body = response.get_json()
    assert body["access_token"]
    assert body["user"]["role"] == "admin"
    assert body["user"]["school_id"] == school_data.school_id
    assert "access_token_cookie" in response.headers.get("Set-Cookie", "")


def test_bad_password_is_unauthorized(client, school_data):
    response = _login(client, password="wrong")
    assert response.status_code == 401
    assert response.get_json() == {"error": "Invalid username or password"}


def test_login_requires_credentials(client, school_data):
    response = client.post("/auth/login", json={"username": "springfield_admin"})
    assert response.status_code == 400


def test_me_returns_the_caller(client, school_data, admin_headers):
    response = client.get("/auth/me", headers=admin_headers)
    assert response.status_code == 200
    assert response.get_json()["username"] == "springfield_admin"


def test_logout_revokes_the_token(app, school_data, admin_headers):
    client = app.test_client()
    assert client.post("/auth/logout", headers=admin_headers).status_code == 200

    response = client.get("/auth/me", headers=admin_headers)
    assert response.status_code == 401
    assert response.get_json()["message"] == "Token has been revoked"


def test_register_user_for_a_school(client, school_data):
    response = client.post("/auth/register", json={
        "username": "seymour",
        "password": "principal-pass",
        "role": "admin",
        "school_id": school_data.school_id,
    })
    assert response.status_code == 201
    assert response.get_json()["school_id"] == school_data.school_id

    assert _login(client, "seymour", "principal-pass").status_code == 200


def test_register_rejects_duplicate_username(client, school_data):
    response = client.post("/auth/register", json={
        "username": "springfield_admin",
        "password": "x",
        "role": "admin",
        "school_id": school_data.school_id,
    })
    assert response.status_code == 400


def test_register_needs_school_for_school_roles(client, school_data):
    response = client.post("/auth/register", json={
        "username": "otto",
        "password": "bus-pass",
        "role": "staff",
    })
    assert response.status_code == 400


def test_login_is_audited(app, client, school_data):
    _login(client)
    _login(client, password="wrong")

    with open(app.config["AUDIT_LOG_FILE"]) as f:
        lines = f.read().splitlines()
    assert "EVENT: LOGIN_SUCCESS" in lines[0]
    assert "[WARNING] EVENT: LOGIN_FAILED" in lines[1]


def test_refresh_uses_the_refresh_cookie(client, school_data):
    _login(client)

    response = client.post("/auth/refresh")
    assert response.status_code == 200
    assert response.get_json()["access_token"]


def test_refresh_without_cookie_is_unauthorized(client, school_data):
    assert client.post("/auth/refresh").status_code == 401

def register_user(client, payload):
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201
    return response.json()


def login_user(client, email, password, role):
    response = client.post(
        "/api/auth/login",
        json={"email": email, "password": password, "role": role},
    )
    assert response.status_code == 200
    return response.json()["access_token"]


def test_register_login_and_me(client):
    created = register_user(
        client,
        {"name": "Grace Admin", "email": "Grace@Example.com", "password": "password123", "role": "admin"},
    )
    assert created["email"] == "grace@example.com"
    assert "hashed_password" not in created

    token = login_user(client, "grace@example.com", "password123", "admin")
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert me.status_code == 200
    assert me.json()["id"] == created["id"]
    assert me.json()["role"] == "admin"
    assert me.json()["teacher_id"] is None
    assert me.json()["last_login_at"] is not None


def test_duplicate_registration_is_rejected(client):
    payload = {"name": "Sam", "email": "sam@example.com", "password": "password123", "role": "parent"}
    register_user(client, payload)

    response = client.post("/api/auth/register", json=payload)

    assert response.status_code == 409


def test_login_failures(client):
    register_user(client, {"name": "Pat", "email": "pat@example.com", "password": "password123", "role": "parent"})

    wrong_password = client.post("/api/auth/login", json={"email": "pat@example.com", "password": "password999"})
    wrong_role = client.post(
        "/api/auth/login",
        json={"email": "pat@example.com", "password": "password123", "role": "admin"},
    )

    assert wrong_password.status_code == 401
    assert wrong_role.status_code == 403


def test_me_requires_valid_token(client):
    assert client.get("/api/auth/me").status_code in {401, 403}
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer nope"}).status_code == 401


def _admin_token(client):
    register_user(
        client,
        {"name": "Registry Admin", "email": "registry@example.com", "password": "password123", "role": "admin"},
    )
    return login_user(client, "registry@example.com", "password123", "admin")


def _create_teacher(client, token, **overrides):
    body = {"first_name": "Ada", "last_name": "Lovelace", **overrides}
    response = client.post("/api/teachers", json=body, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 201
    return response.json()


def test_teacher_account_requires_existing_teacher(client):
    missing_link = client.post(
        "/api/auth/register",
        json={"name": "Ada", "email": "ada@example.com", "password": "password123", "role": "teacher"},
    )
    unknown_teacher = client.post(
        "/api/auth/register",
        json={
            "name": "Ada",
            "email": "ada@example.com",
            "password": "password123",
            "role": "teacher",
            "teacher_id": "does-not-exist",
        },
    )

    assert missing_link.status_code == 422
    assert unknown_teacher.status_code == 404


def test_teacher_account_links_once_and_logs_in_with_teacher_id(client):
    teacher = _create_teacher(client, _admin_token(client))
    body = {
        "name": "Ada",
        "email": "ada@example.com",
        "password": "password123",
        "role": "teacher",
        "teacher_id": teacher["id"],
    }

    created = register_user(client, body)
    second = client.post("/api/auth/register", json={**body, "email": "ada2@example.com"})

    assert created["teacher_id"] == teacher["id"]
    assert second.status_code == 409
    assert second.json()["detail"] == "Teacher already has an account"

    login = client.post(
        "/api/auth/login",
        json={"email": "ada@example.com", "password": "password123", "teacher_id": teacher["id"]},
    )
    wrong_teacher = client.post(
        "/api/auth/login",
        json={"email": "ada@example.com", "password": "password123", "teacher_id": "someone-else"},
    )

    assert login.status_code == 200
    assert login.json()["expires_in"] > 0
    assert login.json()["user"]["teacher_id"] == teacher["id"]
    assert wrong_teacher.status_code == 403


def test_teacher_link_is_dropped_for_other_roles(client):
    created = register_user(
        client,
        {
            "name": "Pat",
            "email": "pat@example.com",
            "password": "password123",
            "role": "parent",
            "teacher_id": "ignored",
        },
    )

    assert created["teacher_id"] is None


def test_inactive_teacher_cannot_be_linked(client):
    teacher = _create_teacher(client, _admin_token(client), is_active=False)

    response = client.post(
        "/api/auth/register",
        json={
            "name": "Ada",
            "email": "ada@example.com",
            "password": "password123",
            "role": "teacher",
            "teacher_id": teacher["id"],
        },
    )

    assert response.status_code == 409

from datetime import datetime, timedelta, timezone

from jose import jwt

from bookwyrm import models

SECRET_KEY = "test-secret"


def _session_claims(client):
    token = client.cookies.get("__session")
    assert token, "no session cookie set"
    return jwt.decode(token, SECRET_KEY, algorithms=["HS256"])


def test_login_page_for_anonymous(client):
    response = client.get("/login")
    assert response.status_code == 200
    assert response.json() == {"error": None}


def test_login_sets_session_matching_user_row(client, create_user, db_session):
    user = create_user()

    response = client.post("/login", data={"email": "alice@example.com", "password": "password123"})

    assert response.status_code == 303
    assert response.headers["location"] == "/"
    assert "__session=" in response.headers["set-cookie"]
    assert "httponly" in response.headers["set-cookie"].lower()

    db_session.expire_all()
    db_user = db_session.query(models.User).filter(models.User.id == user.id).one()
    assert _session_claims(client)["user"] == {
        "id": db_user.id,
        "name": db_user.name,
        "email": db_user.email,
    }


def test_login_accepts_json(client, create_user):
    create_user()

    response = client.post("/login", json={"email": "alice@example.com", "password": "password123"})

    assert response.status_code == 303
    assert client.cookies.get("__session")


def test_login_with_wrong_password(client, create_user):
    create_user()

    response = client.post("/login", data={"email": "alice@example.com", "password": "wrong-password"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid email or password"}
    assert "set-cookie" not in response.headers


def test_login_with_unknown_email(client):
    response = client.post("/login", data={"email": "nobody@example.com", "password": "password123"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid email or password"}


def test_login_with_missing_fields(client):
    response = client.post("/login", data={"email": "alice@example.com"})

    assert response.status_code == 400
    assert "password" in response.json()["error"]


def test_login_page_redirects_when_logged_in(client, create_user, login):
    create_user()
    login()

    response = client.get("/login")

    assert response.status_code == 303
    assert response.headers["location"] == "/"


def test_register_creates_basic_user_and_logs_in(client, db_session):
    response = client.post(
        "/login",
        data={
            "actionType": "register",
            "name": "Bob Smith",
            "email": "bob@example.com",
            "password": "password123",
        },
    )

    assert response.status_code == 303
    db_user = db_session.query(models.User).filter(models.User.email == "bob@example.com").one()
    assert db_user.tier == models.UserTier.BASIC
    assert db_user.is_admin is False
    assert db_user.password != "password123"
    assert _session_claims(client)["user"]["id"] == db_user.id


def test_register_ignores_admin_flag(client, db_session):
    client.post(
        "/login",
        data={
            "actionType": "register",
            "name": "Mallory",
            "email": "mallory@example.com",
            "password": "password123",
            "isAdmin": "true",
        },
    )

    db_user = db_session.query(models.User).filter(models.User.email == "mallory@example.com").one()
    assert db_user.is_admin is False


def test_register_with_taken_email(client, create_user):
    create_user()

    response = client.post(
        "/login",
        data={
            "actionType": "register",
            "name": "Alice Again",
            "email": "alice@example.com",
            "password": "password123",
        },
    )

    assert response.status_code == 400
    assert response.json() == {"error": "An account with this email already exists"}


def test_unknown_login_action(client):
    response = client.post("/login", data={"actionType": "reset", "email": "a@example.com"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid action"}


def test_logout_page_requires_login(client):
    response = client.get("/logout")

    assert response.status_code == 303
    assert response.headers["location"] == "/login"


def test_logout_page_shows_current_user(client, create_user, login):
    create_user(tier=models.UserTier.PREMIER)
    login()

    response = client.get("/logout")

    assert response.status_code == 200
    body = response.json()["user"]
    assert body["email"] == "alice@example.com"
    assert body["tier"] == "PREMIER"
    assert body["isAdmin"] is False


def test_logout_then_authenticated_route_redirects_to_login(client, create_user, login):
    create_user()
    login()
    assert client.get("/logout").status_code == 200

    response = client.post("/logout")

    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert not client.cookies.get("__session")

    follow_up = client.get("/logout")
    assert follow_up.status_code == 303
    assert follow_up.headers["location"] == "/login"


def test_users_grid_requires_admin(client, create_user, login):
    create_user()
    login()

    response = client.get("/users-grid")

    assert response.status_code == 303
    assert response.headers["location"] == "/login"


def test_users_grid_anonymous(client):
    assert client.get("/users-grid").headers["location"] == "/login"
    assert client.post("/users-grid", data={"actionType": "delete", "id": "x"}).status_code == 303


def test_forged_admin_session_is_denied(client, create_user):
    user = create_user()
    now = datetime.now(timezone.utc)
    forged = jwt.encode(
        {
            "user": {"id": user.id, "name": user.name, "email": user.email, "isAdmin": True, "tier": "PREMIER"},
            "isAdmin": True,
            "iat": now,
            "exp": now + timedelta(hours=1),
        },
        SECRET_KEY,
        algorithm="HS256",
    )

    for path in ("/users-grid", "/books-grid", "/reviews-grid"):
        response = client.get(path, headers={"Cookie": f"__session={forged}"})
        assert response.status_code == 303
        assert response.headers["location"] == "/login"


def test_demoted_admin_loses_access_with_live_session(admin_client, db_session):
    assert admin_client.get("/users-grid").status_code == 200

    admin = db_session.query(models.User).filter(models.User.email == "admin@example.com").one()
    admin.is_admin = False
    db_session.commit()

    assert admin_client.get("/users-grid").status_code == 303


def test_users_grid_lists_users_by_name(admin_client, create_user):
    create_user(name="Zed", email="zed@example.com")
    create_user(name="Bob", email="bob@example.com")

    response = admin_client.get("/users-grid")

    assert response.status_code == 200
    users = response.json()["users"]
    assert [u["name"] for u in users] == ["Ada Admin", "Bob", "Zed"]
    assert "password" not in users[0]
    assert set(users[0]) >= {"id", "name", "email", "tier", "isAdmin", "createdAt", "updatedAt"}


def test_users_grid_create_update_delete(admin_client, db_session):
    response = admin_client.post(
        "/users-grid",
        data={
            "actionType": "create",
            "id": "user-from-grid",
            "name": "Carol",
            "email": "carol@example.com",
            "tier": "PREMIER",
            "isAdmin": "false",
        },
    )
    assert response.status_code == 201
    assert response.json() == {"success": True}

    carol = db_session.query(models.User).filter(models.User.id == "user-from-grid").one()
    assert carol.tier == models.UserTier.PREMIER
    assert carol.password != "changeme123"

    response = admin_client.post(
        "/users-grid",
        data={
            "actionType": "update",
            "id": "user-from-grid",
            "name": "Carol King",
            "email": "carol@example.com",
            "tier": "BASIC",
            "isAdmin": "true",
        },
    )
    assert response.status_code == 200
    db_session.expire_all()
    carol = db_session.query(models.User).filter(models.User.id == "user-from-grid").one()
    assert carol.name == "Carol King"
    assert carol.is_admin is True
    assert carol.tier == models.UserTier.BASIC

    response = admin_client.post("/users-grid", data={"actionType": "delete", "id": "user-from-grid"})
    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.query(models.User).filter(models.User.id == "user-from-grid").first() is None


def test_admin_created_user_can_log_in_with_default_password(admin_client):
    admin_client.post(
        "/users-grid",
        data={"actionType": "create", "name": "Dan", "email": "dan@example.com"},
    )
    admin_client.post("/logout")

    response = admin_client.post("/login", data={"email": "dan@example.com", "password": "changeme123"})

    assert response.status_code == 303


def test_users_grid_create_requires_name_and_email(admin_client):
    response = admin_client.post("/users-grid", data={"actionType": "create", "name": ""})

    assert response.status_code == 400
    assert "error" in response.json()


def test_users_grid_update_to_taken_email(admin_client, create_user):
    bob = create_user(name="Bob", email="bob@example.com")

    response = admin_client.post(
        "/users-grid",
        data={"actionType": "update", "id": bob.id, "name": "Bob", "email": "admin@example.com"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "An account with this email already exists"}


def test_users_grid_update_missing_user(admin_client):
    response = admin_client.post(
        "/users-grid",
        data={"actionType": "update", "id": "missing", "name": "X", "email": "x@example.com"},
    )

    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


def test_delete_user_with_reviews_is_blocked(admin_client, db_session, create_user, create_book, create_review):
    bob = create_user(name="Bob", email="bob@example.com")
    create_review(bob, create_book())

    response = admin_client.post("/users-grid", data={"actionType": "delete", "id": bob.id})

    assert response.status_code == 400
    assert response.json() == {
        "error": "Cannot delete user because they have associated reviews. Please delete their reviews first."
    }
    db_session.expire_all()
    assert db_session.query(models.User).filter(models.User.id == bob.id).count() == 1
    assert db_session.query(models.Review).count() == 1


def test_users_grid_unknown_action(admin_client):
    response = admin_client.post("/users-grid", data={"actionType": "archive", "id": "x"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid action type"}


def test_users_grid_delete_without_id(admin_client):
    response = admin_client.post("/users-grid", data={"actionType": "delete"})

    assert response.status_code == 400
    assert response.json() == {"error": "ID is required"}


def test_users_grid_update_without_tier_keeps_premier(admin_client, create_user, db_session):
    vip = create_user(name="Vip", email="vip@example.com", tier=models.UserTier.PREMIER, is_admin=True)

    response = admin_client.post(
        "/users-grid",
        data={"actionType": "update", "id": vip.id, "name": "Vip Renamed", "email": "vip@example.com"},
    )

    assert response.status_code == 200
    db_session.expire_all()
    vip = db_session.query(models.User).filter(models.User.id == vip.id).one()
    assert vip.name == "Vip Renamed"
    assert vip.tier == models.UserTier.PREMIER
    assert vip.is_admin is True


def test_users_grid_update_with_blank_tier_keeps_tier(admin_client, create_user, db_session):
    vip = create_user(name="Vip", email="vip@example.com", tier=models.UserTier.PREMIER)

    admin_client.post(
        "/users-grid",
        data={"actionType": "update", "id": vip.id, "name": "Vip", "email": "vip@example.com", "tier": ""},
    )

    db_session.expire_all()
    assert db_session.query(models.User).filter(models.User.id == vip.id).one().tier == models.UserTier.PREMIER

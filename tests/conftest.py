import os

# bookwyrm.main builds a default app on import; keep it off Postgres
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from bookwyrm import auth, models
from bookwyrm.config import Settings
from bookwyrm.database import Base
from bookwyrm.main import create_app

TEST_SECRET_KEY = "test-secret"
DEFAULT_PASSWORD = "password123"


@pytest.fixture(scope="function")
def test_settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        SECRET_KEY=TEST_SECRET_KEY,
        RATE_LIMIT_ENABLED=False,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture(scope="function")
def app(test_settings):
    app = create_app(test_settings)
    Base.metadata.create_all(bind=app.state.engine)
    yield app
    app.state.engine.dispose()


@pytest.fixture(scope="function")
def client(app):
    with TestClient(app, follow_redirects=False) as c:
        yield c


# Depends on client so the session is closed before the lifespan disposes the engine
@pytest.fixture(scope="function")
def db_session(app, client):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def create_user(db_session):
    def _create_user(
        name="Alice Johnson",
        email="alice@example.com",
        password=DEFAULT_PASSWORD,
        is_admin=False,
        tier=models.UserTier.BASIC,
    ):
        user = models.User(
            name=name,
            email=email,
            password=auth.hash_password(password),
            is_admin=is_admin,
            tier=tier,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture
def create_book(db_session):
    def _create_book(title="The Name of the Wind", author="Patrick Rothfuss", isbn="978-0756404741"):
        book = models.Book(title=title, author=author, isbn=isbn)
        db_session.add(book)
        db_session.commit()
        db_session.refresh(book)
        return book

    return _create_book


@pytest.fixture
def create_review(db_session):
    def _create_review(user, book, rating=4, text="Beautifully written."):
        review = models.Review(rating=rating, review=text, user_id=user.id, book_id=book.id)
        db_session.add(review)
        db_session.commit()
        db_session.refresh(review)
        return review

    return _create_review


@pytest.fixture
def login(client):
    def _login(email="alice@example.com", password=DEFAULT_PASSWORD):
        response = client.post("/login", data={"email": email, "password": password})
        assert response.status_code == 303, response.text
        return response

    return _login


@pytest.fixture
def admin_client(client, create_user, login):
    create_user(name="Ada Admin", email="admin@example.com", is_admin=True)
    login(email="admin@example.com")
    return client

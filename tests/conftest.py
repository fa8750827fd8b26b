import pytest
from fastapi.testclient import TestClient

from storefront.config import Settings
from storefront.main import create_app
from storefront.models.user import ADMIN_ROLE, User

ACCESS_SECRET = "test-access-secret"
REFRESH_SECRET = "test-refresh-secret"


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        environment="development",
        database_url="sqlite://",
        redis_url=None,
        access_token_secret=ACCESS_SECRET,
        refresh_token_secret=REFRESH_SECRET,
        cloudinary_cloud_name="",
        cloudinary_api_key="",
        cloudinary_api_secret="",
        db_retry_base_delay=0.01,
        db_retry_max_delay=0.01
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def signup(client, email="a@x.com", password="pw", name="Alice"):
    response = client.post("/api/auth/signup", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()


def promote_to_admin(app, user_id):
    db = app.state.session_factory()
    try:
        db.query(User).filter(User.id == user_id).update({User.role: ADMIN_ROLE})
        db.commit()
    finally:
        db.close()


@pytest.fixture
def user(client):
    """Signed-up user; the client carries its cookies"""
    return signup(client)


@pytest.fixture
def admin(app, client):
    """Signed-up admin; the client carries its cookies"""
    data = signup(client, email="admin@shop.io", password="admin-pw", name="Admin")
    promote_to_admin(app, data["_id"])
    return data


def create_product(client, **overrides):
    payload = {
        "name": "Denim Jacket",
        "description": "Classic blue denim",
        "price": 79.5,
        "category": "jackets",
    }
    payload.update(overrides)
    response = client.post("/api/products", json=payload)
    assert response.status_code == 201, response.text
    return response.json()

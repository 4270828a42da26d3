import httpx
import pytest

from sweetshop.core.config import Settings
from sweetshop.core.database import init_db
from sweetshop.main import create_app

ADMIN_EMAIL = "admin@sweetshop.test"
PASSWORD = "s3cret-pass"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        jwt_secret_key="test-secret-key",
        password_hash_rounds=4,
        admin_email=ADMIN_EMAIL,
        environment="development",
        log_level="WARNING",
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    init_db(app.state.engine)
    yield app
    app.state.engine.dispose()


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://sweetshop.test",
    ) as client:
        yield client


async def login_headers(client: httpx.AsyncClient, email: str, password: str = PASSWORD) -> dict:
    await client.post("/api/auth/register", json={"email": email, "password": password})
    response = await client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
async def admin_headers(client):
    return await login_headers(client, ADMIN_EMAIL)


@pytest.fixture
async def user_headers(client):
    return await login_headers(client, "buyer@sweetshop.test")


@pytest.fixture
def make_sweet(client, admin_headers):
    async def _make(name="Kaju Katli", category="Barfi", price=25.0, quantity=10):
        response = await client.post(
            "/api/sweets",
            json={"name": name, "category": category, "price": price, "quantity": quantity},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["sweet"]

    return _make

import pytest
from fastapi.testclient import TestClient
from cms.core.config import Settings
from cms.db.database import Store
from cms.main import create_app

API = "/api/v1"


@pytest.fixture
def settings(tmp_path):
    """测试配置：每个测试一个独立的 SQLite 文件"""
    return Settings(
        app_env="test",
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        jwt_secret="test-secret",
        log_level="WARNING",
    )


@pytest.fixture
def store(settings):
    """建表，测试结束后删除"""
    store = Store(settings.sqlalchemy_url)
    store.create_tables()
    yield store
    store.drop_tables()
    store.dispose()


@pytest.fixture
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest.fixture
def client(app):
    """创建测试客户端"""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def register_and_login(client):
    """Register a user, log in, return (auth headers, user data)"""
    def _register_and_login(username, password="password123", role="editor", email=None):
        payload = {
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
            "role": role,
        }
        response = client.post(f"{API}/auth/register", json=payload)
        assert response.status_code == 201, response.text

        login_response = client.post(
            f"{API}/auth/login",
            json={"username": username, "password": password}
        )
        assert login_response.status_code == 200, login_response.text
        data = login_response.json()["data"]
        return {"Authorization": f"Bearer {data['token']}"}, data["user"]
    return _register_and_login


@pytest.fixture
def editor(register_and_login):
    return register_and_login("editor1")


@pytest.fixture
def other_editor(register_and_login):
    return register_and_login("editor2")


@pytest.fixture
def admin(register_and_login):
    return register_and_login("admin1", role="admin")

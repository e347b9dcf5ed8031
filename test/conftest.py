import os

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from employee_api.core.config import Settings
from employee_api.core.database import Database
from employee_api.core.uploads import UploadManager
from employee_api.main import create_app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a throwaway SQLite database and upload directory"""
    return Settings(
        JWT_SECRET="test-secret",
        JWT_EXPIRE="7d",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        LOG_FILE=None,
        _env_file=None,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    """FastAPI test client with the lifespan (table creation) running"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def upload_dir(settings):
    return settings.UPLOAD_DIR


def stored_files(directory):
    return sorted(os.listdir(directory)) if os.path.isdir(directory) else []


@pytest.fixture
def user_credentials():
    return {"username": "alice", "email": "a@x.com", "password": "secret1"}


@pytest.fixture
def auth_headers(client, user_credentials):
    """Sign up and log in a user, returning the Authorization header"""
    response = client.post("/api/v1/users/signup", json=user_credentials)
    assert response.status_code == 201

    response = client.post("/api/v1/users/login", json={
        "email": user_credentials["email"],
        "password": user_credentials["password"],
    })
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def employee_data():
    """Sample employee data"""
    return {
        "first_name": "John",
        "last_name": "Doe",
        "email": "john.doe@example.com",
        "position": "Software Engineer",
        "salary": 75000,
        "date_of_joining": "2023-01-15",
        "department": "Engineering",
    }


@pytest_asyncio.fixture
async def database(settings):
    db = Database.from_settings(settings)
    await db.init_db()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def session(database):
    async with database.session_factory() as db_session:
        yield db_session


@pytest.fixture
def uploads(settings):
    return UploadManager.from_settings(settings)


@pytest.fixture
def stored_picture(uploads):
    """Create a file in the upload directory as if it had just been uploaded"""
    counter = {"n": 0}

    def make(name=None):
        counter["n"] += 1
        filename = name or f"profile_picture-test-{counter['n']}.png"
        with open(uploads.path_for(filename), "wb") as out:
            out.write(PNG_BYTES)
        return filename

    return make

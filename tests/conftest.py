import os

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from backend.database import Base, get_db  # noqa: E402
from backend.main import app  # noqa: E402
from backend.models import candidate, user  # noqa: E402,F401


@pytest.fixture
def db_session():
    engine = create_engine('sqlite://', connect_args={'check_same_thread': False}, poolclass=StaticPool)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def signup_payload():
    def build(**overrides) -> dict:
        payload = {
            'name': 'Asha Verma',
            'age': 34,
            'email': 'asha@example.com',
            'mobile': '9876543210',
            'address': '12 MG Road, Pune',
            'aadharCardNumber': '123456789012',
            'password': 'correct-horse',
            'role': 'voter',
        }
        payload.update(overrides)
        return payload

    return build


@pytest.fixture
def register(client, signup_payload):
    """Sign a user up through the API and return the response body."""
    def do_register(**overrides) -> dict:
        response = client.post('/user/signup', json=signup_payload(**overrides))
        assert response.status_code == 200, response.text
        return response.json()

    return do_register

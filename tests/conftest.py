"""
Pytest configuration and fixtures for the MovieBuzz auth API.
"""

import os
import tempfile

import pytest
from faker import Faker

_TMP_DIR = tempfile.mkdtemp(prefix="moviebuzz-test-")
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['DATABASE_URL'] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ['IDENTIFIER_KIND'] = 'email'
for _var in ('SMTP_SERVER', 'SMTP_USER', 'SMTP_PASSWORD', 'OTP_RESEND_COOLDOWN_SECONDS'):
    os.environ.pop(_var, None)

from fastapi.testclient import TestClient  # noqa: E402

from moviebuzz.core.config import settings  # noqa: E402
from moviebuzz.database import Base, SessionLocal, engine  # noqa: E402
from moviebuzz.main import app as fastapi_app  # noqa: E402

fake = Faker()
API = settings.API_PREFIX


def new_username():
    return f"{fake.user_name()[:16]}{fake.unique.pyint(1000, 9999)}"


def new_email(username=None):
    return f"{username or new_username()}@moviebuzz.io"


@pytest.fixture(scope='session')
def app():
    """Application with a fresh schema."""
    Base.metadata.create_all(bind=engine)
    yield fastapi_app
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope='function')
def client(app):
    return TestClient(app)


@pytest.fixture(scope='function')
def db_session(app):
    """Empty tables before each test and hand out a session."""
    session = SessionLocal()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    yield session
    session.rollback()
    session.close()


def register(client, username=None, password='secret123', email=None):
    username = username or new_username()
    email = email or new_email(username)
    resp = client.post(f'{API}/register', json={
        'username': username,
        'password': password,
        'email': email,
    })
    return resp, {'username': username, 'password': password, 'email': email}


def auth_headers(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def pending_user(client, db_session):
    """A registered user whose OTP has not been verified yet."""
    resp, data = register(client)
    assert resp.status_code == 201, resp.text
    data['id'] = resp.json()['userId']
    data['otp'] = resp.json()['otp']
    return data


@pytest.fixture
def verified_user(client, pending_user):
    resp = client.post(f'{API}/verify-otp', json={
        'email': pending_user['email'],
        'otp': pending_user['otp'],
    })
    assert resp.status_code == 200, resp.text
    return {**pending_user, 'token': resp.json()['token']}


@pytest.fixture
def admin(client, db_session):
    """The bootstrap admin created through /setup."""
    data = {'username': 'rootadmin', 'password': 'adminpass123'}
    resp = client.post(f'{API}/setup', json=data)
    assert resp.status_code == 201, resp.text
    return {**data, 'id': resp.json()['user']['id'], 'token': resp.json()['token']}

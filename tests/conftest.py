"""
Shared fixtures: an in-memory database per test, a fake S3 client,
and helpers to register users and file reports through the API.
"""

import io
import os
import uuid
from types import SimpleNamespace

os.environ["STORAGE_PUBLIC_URL"] = "https://storage.test"
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.db.db import get_session, init_db, register_sqlite_functions
from app.main import app
from app.utils import storage_service


class FakeS3:
    def __init__(self):
        self.objects = {}
        self.deleted = []
        self.fail_uploads = False
        self.fail_deletes = False

    def upload_fileobj(self, fileobj, bucket, key, ExtraArgs=None):
        if self.fail_uploads:
            raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "PutObject")
        self.objects[(bucket, key)] = fileobj.read()

    def delete_object(self, Bucket, Key):
        if self.fail_deletes:
            raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "DeleteObject")
        self.objects.pop((Bucket, Key), None)
        self.deleted.append((Bucket, Key))

    def generate_presigned_url(self, method, Params, ExpiresIn):
        return f"https://signed.test/{Params['Bucket']}/{Params['Key']}"


@pytest.fixture
def s3(monkeypatch):
    fake = FakeS3()
    monkeypatch.setattr(storage_service, "get_s3_client", lambda: fake)
    return fake


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    register_sqlite_functions(engine)
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine, s3):
    def _get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session_override
    yield TestClient(app)
    app.dependency_overrides = {}


@pytest.fixture
def png_bytes():
    def _make(size=(640, 480), color=(200, 30, 30)):
        buffer = io.BytesIO()
        Image.new("RGB", size, color).save(buffer, format="PNG")
        return buffer.getvalue()

    return _make


@pytest.fixture
def make_user(client):
    def _make(first_name="Ana", last_name="López", email=None, password="secreto123"):
        email = email or f"{uuid.uuid4().hex[:10]}@tubarrio.mx"
        response = client.post(
            "/auth/register",
            json={"first_name": first_name, "last_name": last_name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        return SimpleNamespace(
            id=data["user"]["id"],
            email=email,
            password=password,
            token=data["access_token"],
            headers={"Authorization": f"Bearer {data['access_token']}"},
        )

    return _make


REPORT_FORM = {
    "title": "Bache en Av. Juárez",
    "type": "Vialidad",
    "barrio": "Col. Centro",
    "description": "Hay un bache enorme frente a la escuela primaria.",
    "location": "Av. Juárez 120",
}


@pytest.fixture
def make_report(client):
    def _make(user, image=None, **overrides):
        data = {**REPORT_FORM, **overrides}
        files = {"image": ("foto.png", image, "image/png")} if image else None
        response = client.post("/reports", data=data, files=files, headers=user.headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _make

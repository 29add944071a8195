from datetime import date

import pytest
from django.contrib.auth.models import User
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import Client

from tmbackend.api.auth import issue_token
from tmbackend.api.models import Task


class ApiClient:
    """``django.test.Client`` that sends a bearer token when it has one."""

    def __init__(self, token=None):
        self.client = Client()
        self.token = token

    def _auth(self):
        if self.token is None:
            return {}
        return {"HTTP_AUTHORIZATION": f"Bearer {self.token}"}

    def get(self, url, data=None):
        return self.client.get(url, data, **self._auth())

    def post(self, url, body):
        return self.client.post(url, body, content_type="application/json", **self._auth())

    def put(self, url, body):
        return self.client.put(url, body, content_type="application/json", **self._auth())

    def delete(self, url):
        return self.client.delete(url, **self._auth())

    def upload(self, name, content, content_type, url="/api/tasks/bulk-upload"):
        upload = SimpleUploadedFile(name, content, content_type=content_type)
        return self.client.post(url, {"file": upload}, **self._auth())


@pytest.fixture(autouse=True)
def _test_settings(settings, tmp_path):
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
    upload_dir = tmp_path / "uploads"
    upload_dir.mkdir()
    settings.UPLOAD_DIR = upload_dir


@pytest.fixture
def upload_dir(settings):
    return settings.UPLOAD_DIR


@pytest.fixture
def user(db):
    return User.objects.create_user(username="alice", email="alice@example.com", password="alice-password")


@pytest.fixture
def other_user(db):
    return User.objects.create_user(username="bob", email="bob@example.com", password="bob-password")


@pytest.fixture
def api(user):
    return ApiClient(issue_token(user))


@pytest.fixture
def other_api(other_user):
    return ApiClient(issue_token(other_user))


@pytest.fixture
def anon(db):
    return ApiClient()


@pytest.fixture
def make_task():
    def _make(owner, title="Write report", **fields):
        fields.setdefault("due_date", date(2024, 12, 31))
        return Task.objects.create(user=owner, title=title, **fields)
    return _make

"""
Shared fixtures: an app on in-memory SQLite, a fake OpenAI client injected
through the app factory, and helpers to seed clients and log in.
"""
import itertools
from collections import defaultdict
from types import SimpleNamespace

import httpx
import openai
import pytest

from avatar_api import create_app, db
from avatar_api.config import Config
from avatar_api.models.client import Client
from avatar_api.models.group import Group


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    OPENAI_API_KEY = "sk-default"
    OPENAI_GROUP_API_KEYS = {"ACME": "sk-acme", "GLOBEX": "sk-globex"}
    OPENAI_MODEL = "gpt-4o-mini"
    SESSION_LIFETIME_HOURS = 24


def remote_not_found(what):
    request = httpx.Request("GET", "https://api.openai.com/v1/test")
    return openai.NotFoundError(f"No such {what}", response=httpx.Response(404, request=request), body=None)


class FakeRemote:
    """In-memory stand-in for the parts of the OpenAI SDK the app calls."""

    def __init__(self):
        self.calls = []
        self.api_keys = []
        self.failures = {}
        self.hooks = {}
        self.batch_status = "completed"
        self.assistant_store = {}
        self.file_store = {}
        self.store_files = defaultdict(list)
        self._counters = defaultdict(lambda: itertools.count(1))
        self._next = {}

        self.beta = SimpleNamespace(assistants=SimpleNamespace(
            create=self._assistant_create,
            retrieve=self._assistant_retrieve,
            update=self._assistant_update,
            delete=self._assistant_delete,
        ))
        self.files = SimpleNamespace(create=self._file_create, delete=self._file_delete)
        self.vector_stores = SimpleNamespace(
            create=self._store_create,
            files=SimpleNamespace(list=self._store_files_list, delete=self._store_file_delete),
            file_batches=SimpleNamespace(create_and_poll=self._batch_create_and_poll),
        )

    def factory(self, api_key, timeout, max_retries):
        self.api_keys.append(api_key)
        return self

    def peek_id(self, prefix):
        if prefix not in self._next:
            self._next[prefix] = next(self._counters[prefix])
        return f"{prefix}_{self._next[prefix]}"

    def _new_id(self, prefix):
        value = self.peek_id(prefix)
        del self._next[prefix]
        return value

    def _record(self, call_name, /, *args, **kwargs):
        self.calls.append((call_name, args, kwargs))
        if call_name in self.hooks:
            self.hooks[call_name](*args, **kwargs)
        if call_name in self.failures:
            raise self.failures[call_name]

    def calls_named(self, name):
        return [(args, kwargs) for call, args, kwargs in self.calls if call == name]

    # assistants
    def _assistant_create(self, **kwargs):
        self._record("assistants.create", **kwargs)
        asst_id = self._new_id("asst")
        self.assistant_store[asst_id] = dict(kwargs, id=asst_id, tool_resources=None)
        return SimpleNamespace(**self.assistant_store[asst_id])

    def _assistant_retrieve(self, asst_id):
        self._record("assistants.retrieve", asst_id)
        if asst_id not in self.assistant_store:
            raise remote_not_found("assistant")
        return SimpleNamespace(**self.assistant_store[asst_id])

    def _assistant_update(self, asst_id, **kwargs):
        self._record("assistants.update", asst_id, **kwargs)
        if asst_id not in self.assistant_store:
            raise remote_not_found("assistant")
        self.assistant_store[asst_id].update(kwargs)
        return SimpleNamespace(**self.assistant_store[asst_id])

    def _assistant_delete(self, asst_id):
        self._record("assistants.delete", asst_id)
        self.assistant_store.pop(asst_id, None)

    # files
    def _file_create(self, file, purpose):
        name, data = file
        self._record("files.create", name=name, size=len(data), purpose=purpose)
        file_id = self._new_id("file")
        self.file_store[file_id] = {"name": name, "size": len(data)}
        return SimpleNamespace(id=file_id, filename=name, bytes=len(data))

    def _file_delete(self, file_id):
        self._record("files.delete", file_id)
        self.file_store.pop(file_id, None)
        for file_ids in self.store_files.values():
            if file_id in file_ids:
                file_ids.remove(file_id)

    # vector stores
    def _store_create(self, **kwargs):
        self._record("vector_stores.create", **kwargs)
        store_id = self._new_id("vs")
        self.store_files[store_id] = []
        return SimpleNamespace(id=store_id, **kwargs)

    def _store_files_list(self, vector_store_id):
        self._record("vector_stores.files.list", vector_store_id=vector_store_id)
        return [SimpleNamespace(id=file_id) for file_id in self.store_files[vector_store_id]]

    def _store_file_delete(self, file_id, vector_store_id):
        self._record("vector_stores.files.delete", file_id=file_id, vector_store_id=vector_store_id)
        if file_id not in self.store_files[vector_store_id]:
            raise remote_not_found("vector store file")
        self.store_files[vector_store_id].remove(file_id)

    def _batch_create_and_poll(self, vector_store_id, file_ids):
        self._record("file_batches.create_and_poll", vector_store_id=vector_store_id, file_ids=file_ids)
        failed = 0
        if self.batch_status == "completed":
            self.store_files[vector_store_id].extend(file_ids)
        else:
            failed = len(file_ids)
        return SimpleNamespace(
            id=self._new_id("vsfb"),
            status=self.batch_status,
            file_counts=SimpleNamespace(completed=len(file_ids) - failed, failed=failed)
        )


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def app(tmp_path, remote):
    config = type("LocalTestConfig", (TestConfig,), {"UPLOAD_FOLDER": str(tmp_path / "uploads")})
    app = create_app(config, openai_factory=remote.factory)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    # Cookies off: every request authenticates explicitly through headers
    return app.test_client(use_cookies=False)


@pytest.fixture
def make_client(app):
    def _make_client(email, password="p", name="Test User", role="user", group=None, is_active=True, id=None):
        group_row = None
        if group:
            group_row = Group.query.filter_by(name=group).first()
            if not group_row:
                group_row = Group(name=group, description=f"{group} tenant")
                db.session.add(group_row)
        row = Client(id=id, email=email, name=name, role=role, is_active=is_active, group=group_row)
        row.set_password(password)
        db.session.add(row)
        db.session.commit()
        return row
    return _make_client


@pytest.fixture
def login(client):
    def _login(email, password="p"):
        response = client.post("/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.get_json()
        return {"Authorization": f"Bearer {response.get_json()['token']}"}
    return _login


@pytest.fixture
def user(make_client):
    return make_client("a@x.com", password="p", name="Alice", group="Acme", id=7)


@pytest.fixture
def user_headers(user, login):
    return login("a@x.com", "p")


@pytest.fixture
def admin(make_client):
    return make_client("root@x.com", password="secret", name="Root", role="admin")


@pytest.fixture
def admin_headers(admin, login):
    return login("root@x.com", "secret")


@pytest.fixture
def create_assistant(client, user, user_headers):
    def _create(headers=None, client_id=None, **fields):
        payload = {"name": "Bot", "instructions": "Help users"}
        payload.update(fields)
        response = client.post(
            f"/create_assistant/{client_id or user.id}",
            json=payload,
            headers=headers or user_headers
        )
        assert response.status_code == 201, response.get_json()
        return response.get_json()["assistant"]
    return _create

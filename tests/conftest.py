"""
Fixtures compartidas: entorno de test, Mongo en memoria y helpers de sesión.

Las variables de entorno se fijan antes de importar `saas_auth` porque
`Settings` se instancia al importar el módulo de configuración.
"""
import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-with-enough-entropy-0123456789")
os.environ.setdefault("ADMIN_PASSWORD", "admin-secret")
os.environ.setdefault("CLIENT_PASSWORD", "client-default-pass")

from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from saas_auth.core import rate_limit
from saas_auth.infrastructure.db import mongo
from saas_auth.infrastructure.security.passwords import hash_password

API = "/api/v1"


class FakeCollection:
    """Subconjunto de la API async de Motor que usan los repositorios."""

    def __init__(self, unique: Tuple[str, ...] = ()) -> None:
        self.docs: List[Dict[str, Any]] = []
        self.unique = unique

    @staticmethod
    def _matches(doc: Dict[str, Any], flt: Dict[str, Any]) -> bool:
        # Como en Mongo, {"campo": None} también matchea campos ausentes
        return all(doc.get(k) == v for k, v in flt.items())

    async def find_one(self, flt: Dict[str, Any], projection: Optional[Dict[str, Any]] = None):
        for doc in self.docs:
            if self._matches(doc, flt):
                return dict(doc)
        return None

    async def insert_one(self, doc: Dict[str, Any]):
        for key in self.unique:
            if any(d.get(key) == doc.get(key) for d in self.docs):
                raise DuplicateKeyError(f"E11000 duplicate key: {key}")
        doc.setdefault("_id", uuid4().hex)
        self.docs.append(dict(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def update_one(self, flt: Dict[str, Any], update: Dict[str, Any]):
        for doc in self.docs:
            if self._matches(doc, flt):
                modified = False
                for k, v in update.get("$set", {}).items():
                    if doc.get(k) != v:
                        doc[k] = v
                        modified = True
                return SimpleNamespace(matched_count=1, modified_count=int(modified))
        return SimpleNamespace(matched_count=0, modified_count=0)


class FakeDB:
    def __init__(self) -> None:
        self._colls: Dict[str, FakeCollection] = {
            "user": FakeCollection(unique=("id", "email")),
            "token": FakeCollection(unique=("token_hash",)),
        }

    def __getitem__(self, name: str) -> FakeCollection:
        return self._colls.setdefault(name, FakeCollection())


@pytest.fixture(autouse=True)
def fake_db(monkeypatch):
    db = FakeDB()
    monkeypatch.setattr(mongo, "_db", db)
    rate_limit.reset_all()
    yield db
    rate_limit.reset_all()


@pytest.fixture
def storage_down(monkeypatch):
    """Simula Mongo caído: get_db() lanza StorageUnavailable."""
    monkeypatch.setattr(mongo, "_db", None)


@pytest.fixture
def seed_user(fake_db):
    def _seed(
        email: str = "ana@example.com",
        password: str = "secret-pass",
        role: str = "user",
        **extra: Any,
    ) -> Dict[str, Any]:
        doc = {
            "id": uuid4().hex,
            "email": email,
            "name": email.split("@")[0],
            "role": role,
            "company_id": "company-1",
            "password_hash": hash_password(password),
            "is_active": True,
        }
        doc.update(extra)
        fake_db["user"].docs.append(doc)
        return doc

    return _seed


@pytest.fixture
def client():
    # Sin `with`: no corre el startup (no hay Mongo real en tests)
    from saas_auth.main import app

    return TestClient(app)


def get_csrf(client: TestClient) -> Dict[str, str]:
    """Pide un token CSRF (la cookie queda en el cliente) y devuelve el header."""
    r = client.get(f"{API}/auth/csrf")
    assert r.status_code == 200
    return {"X-CSRF-Token": r.json()["data"]["csrfToken"]}


def login(client: TestClient, email: str, password: str):
    return client.post(f"{API}/auth/login", json={"email": email, "password": password}, headers=get_csrf(client))


def cleared_cookies(response) -> List[str]:
    """Nombres de cookies que la respuesta borra (Max-Age=0)."""
    names = []
    for header in response.headers.get_list("set-cookie"):
        if "max-age=0" in header.lower():
            names.append(header.split("=", 1)[0])
    return names


@pytest.fixture
def csrf_headers(client):
    return get_csrf(client)


@pytest.fixture
def logged_in(client, seed_user):
    """Usuario con sesión activa en `client`; devuelve (usuario, access token)."""
    user = seed_user()
    r = login(client, user["email"], "secret-pass")
    assert r.status_code == 200, r.text
    return user, r.json()["data"]["token"]

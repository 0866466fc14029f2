"""Shared fixtures for API tests: isolated SQLite database and an authenticated client."""

import unittest
from typing import Any

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import get_db
from app.main import create_app
from app.models import Base
from app.schemas.auth import UserCreate
from app.services.users import create_user, ensure_default_admin

ADMIN_EMAIL = "admin@plataforma.app"
ADMIN_PASSWORD = "Admin@2025"
DEFAULT_PASSWORD = "secret123"


def make_session_factory():
    """Fresh in-memory database with every table; one shared connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine, sessionmaker(bind=engine, autoflush=False, autocommit=False)


class ApiTestCase(unittest.TestCase):
    """Runs the real app against its own database seeded with the default admin."""

    def setUp(self) -> None:
        self.engine, self.SessionLocal = make_session_factory()
        self.app = create_app()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        self.app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(self.app)
        with self.SessionLocal() as db:
            ensure_default_admin(db)

    def tearDown(self) -> None:
        self.client.close()
        self.engine.dispose()

    def session(self) -> Session:
        return self.SessionLocal()

    def login(self, email: str = ADMIN_EMAIL, password: str = ADMIN_PASSWORD) -> str:
        resp = self.client.post("/auth/login", json={"email": email, "password": password})
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()["access_token"]

    def headers(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def make_user(
        self, email: str, role: str = "user", permissions: list[str] | None = None
    ) -> int:
        with self.SessionLocal() as db:
            user = create_user(
                db,
                UserCreate(
                    email=email,
                    password=DEFAULT_PASSWORD,
                    first_name="Test",
                    last_name=role.title(),
                    role=role,
                    permissions=permissions or [],
                ),
            )
            return user.id

    def token_for(self, role: str, permissions: list[str] | None = None) -> str:
        """Create a user with role (and optional grants) and log in as it."""
        email = f"{role}{len(permissions or [])}@empresa.com"
        self.make_user(email, role=role, permissions=permissions)
        return self.login(email, DEFAULT_PASSWORD)

    def admin_headers(self) -> dict[str, str]:
        return self.headers(self.login())

    def post_ok(self, path: str, body: dict[str, Any], headers: dict[str, str]) -> dict:
        resp = self.client.post(path, json=body, headers=headers)
        self.assertIn(resp.status_code, (200, 201), resp.text)
        return resp.json()

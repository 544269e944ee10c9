import os

# must be set before orgdesk.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from orgdesk.auth.tokens import issue_access_token
from orgdesk.db import get_db
from orgdesk.main import create_app
from orgdesk.models import Base
from orgdesk.models.enums import OrgRole, SystemRole
from orgdesk.models.membership import Membership
from orgdesk.models.org import Org
from orgdesk.models.user import User
from orgdesk.permissions.cache import LayerCache
from orgdesk.permissions.store import get_permission_cache
from orgdesk.permissions.updates import seed_global_defaults

def _make_engine(url: str):
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)

    # let sqlalchemy own BEGIN so savepoints behave under pysqlite
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):  # type: ignore[no-untyped-def]
        conn.exec_driver_sql("BEGIN")

    return engine

@pytest.fixture()
def db_session() -> Session:
    engine = _make_engine(os.environ["DATABASE_URL"])
    Base.metadata.create_all(engine)

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session: Session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()

@pytest.fixture()
def permission_cache() -> LayerCache:
    return LayerCache(ttl_seconds=60)

@pytest.fixture()
def client(db_session: Session, permission_cache: LayerCache) -> TestClient:
    app = create_app()

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_permission_cache] = lambda: permission_cache
    return TestClient(app)

@pytest.fixture()
def seeded_defaults(db_session: Session) -> int:
    n = seed_global_defaults(db_session)
    db_session.commit()
    return n

def make_user(db: Session, prefix: str = "user", *, super_admin: bool = False) -> User:
    u = User(email=f"{prefix}+{uuid.uuid4().hex[:8]}@example.com", name=prefix)
    if super_admin:
        u.system_role = SystemRole.super_admin
    db.add(u)
    db.commit()
    return u

def make_org(db: Session, name: str = "org") -> Org:
    o = Org(name=f"{name}-{uuid.uuid4().hex[:6]}")
    db.add(o)
    db.commit()
    return o

def add_member(db: Session, org: Org, user: User, role: OrgRole, department: str | None = None) -> Membership:
    m = Membership(user_id=user.id, org_id=org.id, role=role, department=department)
    db.add(m)
    db.commit()
    return m

def auth(user: User) -> dict[str, str]:
    return {"authorization": f"bearer {issue_access_token(user.id)}"}

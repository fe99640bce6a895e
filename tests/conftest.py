"""Test fixtures for the partner directory.

Builds a fresh in-memory SQLite database per test, seeds a small
organization hierarchy with users and nodes, and replaces outgoing email
with an in-memory recorder.

Seeded directory:

    Root Org        root@example.com (root)
    Org One         admin1@example.com (administrator), user1@example.com (user)
      Org One Lab   adminchild@example.com (administrator)
    Org Two         admin2@example.com (administrator)

    n1        internal node of Org One
    n1_ext    external node of Org One
    n_child   internal node of Org One Lab
    n2        internal node of Org Two
"""

import os
from dataclasses import dataclass
from typing import Any, Generator

# Must be set before partner_directory.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DIRECTORY_BASE_URL", "https://directory.example.com")
os.environ["EMAIL_ENABLED"] = "false"
os.environ["CREDENTIAL_ENCODER"] = "base64"

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from partner_directory.core.access_context import AccessContext  # noqa: E402
from partner_directory.core.credentials import generate_credentials, get_credential_encoder  # noqa: E402
from partner_directory.core.policies import PolicyRegistry, build_policy_registry  # noqa: E402
from partner_directory.core.security import get_password_hash  # noqa: E402
from partner_directory.models.all import (  # noqa: E402
    Base,
    NodeType,
    Organization,
    OrganizationStatus,
    Role,
    User,
    UserStatus,
)
from partner_directory.schemas.node import NodeCreate  # noqa: E402
from partner_directory.services import node_service, notification_service  # noqa: E402

TEST_PASSWORD = "Password123!"


@dataclass
class SeededDirectory:
    root_org_id: int
    o1_id: int
    o1_child_id: int
    o2_id: int

    n1_id: int
    n1_ext_id: int
    n_child_id: int
    n2_id: int

    root: AccessContext
    admin1: AccessContext
    user1: AccessContext
    admin_child: AccessContext
    admin2: AccessContext

    o1_client_secret: str


@pytest.fixture(scope="session")
def user_password() -> str:
    """Password of every seeded user."""
    return TEST_PASSWORD


@pytest.fixture(scope="session")
def password_hash() -> str:
    """bcrypt is slow on purpose; hash the shared test password once."""
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine with all tables created."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def registry() -> PolicyRegistry:
    return build_policy_registry()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    """Every email the notification service tries to send."""
    sent: list[dict[str, Any]] = []

    def fake_send_email(to_email, subject, body, *, html_body=None, reason=None):
        sent.append({"to": to_email, "subject": subject, "body": body, "reason": reason})

    monkeypatch.setattr(notification_service, "send_email", fake_send_email)
    return sent


def _add_organization(db: Session, name: str, parent_id: int | None = None) -> tuple[Organization, str]:
    credentials = generate_credentials()
    organization = Organization(
        parent_id=parent_id,
        name=name,
        client_id=credentials.client_id,
        client_secret=get_credential_encoder().encode(credentials.client_secret),
        status=OrganizationStatus.ACTIVE,
    )
    db.add(organization)
    db.flush()
    return organization, credentials.client_secret


def _add_user(
    db: Session,
    organization_id: int,
    email: str,
    role: Role,
    password_hash: str,
    status: UserStatus = UserStatus.ENABLED,
) -> User:
    user = User(
        organization_id=organization_id,
        email=email,
        full_name=email.split("@")[0].title(),
        hashed_password=password_hash,
        role=role,
        status=status,
    )
    db.add(user)
    db.flush()
    return user


@pytest.fixture
def directory(db: Session, registry: PolicyRegistry, password_hash: str) -> SeededDirectory:
    root_org, _ = _add_organization(db, "Root Org")
    o1, o1_secret = _add_organization(db, "Org One")
    o1_child, _ = _add_organization(db, "Org One Lab", parent_id=o1.id)
    o2, _ = _add_organization(db, "Org Two")

    root = _add_user(db, root_org.id, "root@example.com", Role.ROOT, password_hash)
    admin1 = _add_user(db, o1.id, "admin1@example.com", Role.ADMINISTRATOR, password_hash)
    user1 = _add_user(db, o1.id, "user1@example.com", Role.USER, password_hash)
    admin_child = _add_user(db, o1_child.id, "adminchild@example.com", Role.ADMINISTRATOR, password_hash)
    admin2 = _add_user(db, o2.id, "admin2@example.com", Role.ADMINISTRATOR, password_hash)
    db.commit()

    root_ctx = AccessContext.for_user(root, registry)

    def add_node(organization_id: int, name: str, node_type: NodeType, api_url: str | None = None) -> int:
        node = node_service.create_node(
            db,
            root_ctx,
            organization_id,
            NodeCreate(name=name, type=node_type.value, api_url=api_url),
        )
        return node.id

    return SeededDirectory(
        root_org_id=root_org.id,
        o1_id=o1.id,
        o1_child_id=o1_child.id,
        o2_id=o2.id,
        n1_id=add_node(o1.id, "One Primary", NodeType.INTERNAL),
        n1_ext_id=add_node(o1.id, "One Partner Gateway", NodeType.EXTERNAL, "https://gw.one.example.com"),
        n_child_id=add_node(o1_child.id, "Lab Node", NodeType.INTERNAL),
        n2_id=add_node(o2.id, "Two Primary", NodeType.INTERNAL),
        root=root_ctx,
        admin1=AccessContext.for_user(admin1, registry),
        user1=AccessContext.for_user(user1, registry),
        admin_child=AccessContext.for_user(admin_child, registry),
        admin2=AccessContext.for_user(admin2, registry),
        o1_client_secret=o1_secret,
    )

#!/usr/bin/env python3
# scripts/setup_directory.py
"""
Directory setup.
This script is safe to run many times (idempotent).

- --create-tables creates any missing table (Base.metadata.create_all).
- --ensure-root makes sure the top-level organization and a login-ready
  ROOT user exist. If the user exists it is made login-ready again and its
  password is reset to the one given.
- When both flags are given, tables are created first.

Examples:
  python -m scripts.setup_directory --create-tables

  python -m scripts.setup_directory --create-tables --ensure-root \
    --email root@example.com --password "Root@12345"

  # credentials read from env (ROOT_USER_EMAIL / ROOT_USER_PASSWORD)
  python -m scripts.setup_directory --ensure-root
"""

from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.orm import Session

from partner_directory.core.config import get_settings
from partner_directory.core.credentials import generate_credentials, get_credential_encoder
from partner_directory.core.database import SessionLocal, engine
from partner_directory.core.security import get_password_hash
from partner_directory.models.all import Base, Organization, OrganizationStatus, Role, User, UserStatus

logger = logging.getLogger(__name__)


def create_tables() -> None:
    Base.metadata.create_all(bind=engine)
    print("tables ensured")


def ensure_root_organization(db: Session, *, name: str) -> Organization:
    """
    Ensure a top-level organization called `name` exists.
    """
    existing = (
        db.query(Organization)
        .filter(Organization.parent_id.is_(None), Organization.name == name)
        .first()
    )
    if existing:
        print(f"root organization exists: {name}")
        return existing

    credentials = generate_credentials()
    organization = Organization(
        parent_id=None,
        name=name,
        client_id=credentials.client_id,
        client_secret=get_credential_encoder().encode(credentials.client_secret),
        status=OrganizationStatus.ACTIVE,
    )
    db.add(organization)
    db.commit()
    db.refresh(organization)
    print(f"root organization created: {name}")
    return organization


def ensure_root_user(
    db: Session,
    *,
    organization: Organization,
    email: str,
    password: str,
    full_name: str,
) -> User:
    """
    Ensure a ROOT user exists in `organization`.

    - If the email exists: role ROOT, status ENABLED, password reset.
    - If missing: create it.
    """
    email = email.strip().lower()
    existing = db.query(User).filter(User.email == email).first()

    hashed = get_password_hash(password)

    if existing:
        existing.full_name = existing.full_name or full_name
        existing.role = Role.ROOT
        existing.status = UserStatus.ENABLED
        existing.hashed_password = hashed
        db.commit()
        print(f"ROOT user ensured (updated if needed): {email}")
        return existing

    user = User(
        organization_id=organization.id,
        email=email,
        hashed_password=hashed,
        full_name=full_name,
        role=Role.ROOT,
        status=UserStatus.ENABLED,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    print(f"ROOT user created: {email}")
    return user


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Partner directory setup")
    p.add_argument("--create-tables", action="store_true", help="Create missing tables")
    p.add_argument(
        "--ensure-root",
        action="store_true",
        help="Ensure the root organization and ROOT user exist (from args if provided, else from env)",
    )

    # Optional CLI overrides (otherwise env is used)
    p.add_argument("--email", type=str, help="ROOT user email (or use env ROOT_USER_EMAIL)")
    p.add_argument("--password", type=str, help="ROOT user password (or use env ROOT_USER_PASSWORD)")
    p.add_argument("--full-name", type=str, default=None, help="Default: env ROOT_USER_FULL_NAME")
    p.add_argument("--organization", type=str, default=None, help="Default: env ROOT_ORGANIZATION_NAME")
    return p.parse_args()


def main() -> None:
    args = parse_args()

    if not args.create_tables and not args.ensure_root:
        print("Nothing to do. Use --create-tables and/or --ensure-root.")
        sys.exit(1)

    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    email: str | None = None
    password: str | None = None
    if args.ensure_root:
        email = args.email or settings.root_user_email
        password = args.password or settings.root_user_password
        if not email or not password:
            raise SystemExit(
                "ROOT user credentials missing.\n"
                "Provide --email/--password OR set env ROOT_USER_EMAIL and ROOT_USER_PASSWORD."
            )

    if args.create_tables:
        create_tables()

    if not args.ensure_root:
        return

    db: Session = SessionLocal()
    try:
        organization = ensure_root_organization(
            db, name=args.organization or settings.root_organization_name
        )
        ensure_root_user(
            db,
            organization=organization,
            email=str(email),
            password=str(password),
            full_name=args.full_name or settings.root_user_full_name,
        )
    except Exception:
        db.rollback()
        logger.exception("Directory setup failed")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()

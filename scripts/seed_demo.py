#!/usr/bin/env python3
"""Seed demo data: a handful of donors across areas and blood groups.

Usage:
    python scripts/seed_demo.py          # uses DATABASE_URL from env / .env
    DATABASE_URL=... python scripts/seed_demo.py
"""
from __future__ import annotations

import sys

from sqlalchemy import create_engine
from sqlalchemy.orm import Session

# Ensure project root is on sys.path
sys.path.insert(0, ".")

from donoralert.core.exceptions import DuplicateAddressError
from donoralert.core.settings import get_settings
from donoralert.db.base import Base
from donoralert.db.repositories import DonorRepository
from donoralert.registry.intake import register_donor

DEMO_DONORS = [
    # (name, area, phone, blood_group)
    ("Priya Patel", "Andheri", "+919876543210", "O+"),
    ("Raj Sharma", "Andheri", "+919876543211", "A+"),
    ("Anita Desai", "Bandra", "+919876543212", "B-"),
    ("Vikram Rao", "Bandra", "+919876543213", "O+"),
    ("Meera Iyer", "Dadar", "+919876543214", "AB+"),
    ("Arjun Nair", "Dadar", "+919876543215", "O-"),
]


def seed(session: Session) -> int:
    """Register the demo donors, skipping numbers that already exist."""
    repository = DonorRepository(session)
    created = 0
    for name, area, phone, blood_group in DEMO_DONORS:
        try:
            register_donor(repository, name=name, area=area, phone=phone, blood_group=blood_group)
        except DuplicateAddressError:
            continue
        created += 1
    session.commit()
    return created


def main() -> None:
    settings = get_settings()
    engine = create_engine(settings.database_url)
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        created = seed(session)
    print(f"Seeded {created} donors ({len(DEMO_DONORS) - created} already registered).")


if __name__ == "__main__":
    main()

"""
Pytest configuration and shared fixtures for the clinic P&L tests.

This file provides:
- An isolated JSON clinic store per test
- A seeded store with a small roster and fixed costs
- A FastAPI test client with auth disabled
"""

import os
import tempfile
from datetime import date
from pathlib import Path

import pytest

# Keep module-level store setup away from the repo checkout.
os.environ.setdefault("CLINIC_STORE_PATH", str(Path(tempfile.gettempdir()) / "clinic_store_pytest.json"))
os.environ.setdefault("CLINIC_DB_BACKEND", "json")

from backend import clinic_db
from backend.economics import FixedCost, StaffMember


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def store(tmp_path, monkeypatch):
    """Point the JSON backend at a fresh file."""
    path = tmp_path / "clinic_store.json"
    monkeypatch.setattr(clinic_db, "STORE_PATH", path)
    clinic_db.init_db()
    return path


@pytest.fixture
def roster():
    return [
        StaffMember(id="doc", name="Dr. Gray", role="Physician", hourly_rate=100.0, default_daily_hours=9),
        StaffMember(id="rn", name="Pat Stone", role="RN", hourly_rate=40.0),
        StaffMember(id="ma", name="Lou Park", role="MA", hourly_rate=20.0, default_daily_hours=6),
        StaffMember(id="old", name="Ex Admin", role="Admin", hourly_rate=25.0, active=False),
    ]


@pytest.fixture
def seeded_store(store, roster):
    """Store with a roster, $150 default reimbursement and $300/day fixed cost."""
    for member in roster:
        clinic_db.save_staff(member)
    clinic_db.save_fixed_cost(FixedCost(id="rent", name="Rent", amount=2100.0, frequency="weekly"))
    clinic_db.save_fixed_cost(FixedCost(id="closed", name="Closed lease", amount=999.0, frequency="daily", active=False))
    clinic_db.set_default_reimbursement(150.0)
    return store


@pytest.fixture
def work_day():
    return date(2025, 3, 14)


# ============================================================================
# API Client Fixtures
# ============================================================================

@pytest.fixture
def client(seeded_store, monkeypatch):
    """FastAPI test client over the seeded store, with auth open."""
    from fastapi.testclient import TestClient
    from backend.api import main

    monkeypatch.setattr(main, "API_KEY", None)
    monkeypatch.setattr(main, "JWT_SECRET", None)
    with TestClient(main.app) as test_client:
        yield test_client

"""
Shared test fixtures: SQLite test database, test client, sample grids and records.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set DATABASE_URL before importing app modules
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

from window_pricing.database import Base, get_db
from window_pricing.main import app


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


# --- Sample grids, one per shape. All describe the same 3 × 2 price table ---
#
#            width 100  150  200
#   drop 150       40   50   60
#   drop 200       55   65   75

@pytest.fixture
def standard_grid():
    return {
        "widthColumns": [100, 150, 200],
        "dropRows": [
            {"drop": 150, "prices": [40, 50, 60]},
            {"drop": 200, "prices": [55, 65, 75]},
        ],
        "unit": "cm",
    }


@pytest.fixture
def legacy_a_grid():
    """dropRanges / widthRanges, widths out of order, string cells."""
    return {
        "dropRanges": ["200", "150"],
        "widthRanges": ["150", "100", "200"],
        "prices": [
            ["65", "55", "75"],
            ["50", "40", "60"],
        ],
    }


@pytest.fixture
def legacy_b_grid():
    """widthColumns + nested dropRows, unsorted, mixed strings."""
    return {
        "widthColumns": ["200", 100, "150cm"],
        "dropRows": [
            {"drop": "200", "prices": ["75", 55, "£65"]},
            {"drop": 150, "prices": [60, "40", 50]},
        ],
    }


@pytest.fixture
def legacy_c_grid():
    """Flat arrays + prices dict, mixing all three key spellings."""
    return {
        "widthColumns": [150, 100, 200],
        "dropRows": [200, 150],
        "prices": {
            "100_150": 40, "150_150": "50", "200-150": 60,   # w_d, w_d, w-d
            "200_100": 55, "150-200": 65, "200_200": 75,     # d_w, w-d, w_d
        },
    }


@pytest.fixture
def legacy_d_grid():
    """widths / heights terminology."""
    return {
        "widths": [100, 150, 200],
        "heights": [150, 200],
        "prices": [[40, 50, 60], [55, 65, 75]],
    }

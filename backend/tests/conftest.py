"""
Shared fixtures.
"""
import os

# Read when main builds its settings; keep the limiter out of the way of the suite
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "1000")

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client():
    """Create a test client."""
    from main import app
    return TestClient(app)


@pytest.fixture
def sales_rows():
    return [
        {'product_name': 'Widget', 'region': 'North', 'revenue': 1200, 'quantity': 12, 'date': '2024-01-01'},
        {'product_name': 'Gadget', 'region': 'South', 'revenue': 800, 'quantity': 4, 'date': '2024-01-02'},
        {'product_name': 'Widget', 'region': 'South', 'revenue': 600, 'quantity': 6, 'date': '2024-01-03'},
        {'product_name': 'Gizmo', 'region': 'North', 'revenue': 300, 'quantity': 3, 'date': '2024-01-04'},
    ]

from datetime import datetime, timezone

import matplotlib

matplotlib.use("Agg")

import pytest


@pytest.fixture
def fixed_time():
    return datetime(2024, 2, 14, 9, 30, tzinfo=timezone.utc)

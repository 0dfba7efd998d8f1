"""Test configuration and fixtures."""
import sys
from pathlib import Path

import pytest
import pytest_asyncio

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(project_root / "tests"))

from execution.ledger import PositionLedger  # noqa: E402
from helpers import FakeOracle  # noqa: E402
from storage.db import Database  # noqa: E402


@pytest_asyncio.fixture
async def db(tmp_path):
    database = Database(str(tmp_path / "test.db"), log_retention=50)
    await database.init(initial_balance=10.0)
    yield database
    await database.close()


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest_asyncio.fixture
async def ledger(db, oracle):
    return PositionLedger(db, oracle, sol_usd_rate=150.0)

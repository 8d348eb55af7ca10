import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure the backend package is importable
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from txmonitor.config import Settings  # noqa: E402  pylint: disable=wrong-import-position
from txmonitor.main import create_app  # noqa: E402  pylint: disable=wrong-import-position
from txmonitor.storage.memory import MemoryStore  # noqa: E402  pylint: disable=wrong-import-position


@pytest.fixture()
def store():
    return MemoryStore()


@pytest.fixture()
def settings():
    return Settings(seed_metrics=False, max_upload_bytes=64 * 1024)


@pytest.fixture()
def app(store, settings):
    return create_app(store=store, settings=settings)


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def transaction_payload():
    def _build(**overrides):
        payload = {
            "transactionId": "TXN-0001",
            "accountId": "ACC-0001",
            "amount": 200.0,
            "timestamp": "2024-03-01T14:00:00Z",
            "transactionVelocity": 1,
            "failedAttempts": 0,
            "phoneVerified": True,
            "socialProfilePresence": True,
        }
        payload.update(overrides)
        return payload

    return _build

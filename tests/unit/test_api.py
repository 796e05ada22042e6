from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from pgpvalidation.api.main import create_app
from pgpvalidation.application.nonce import generate_nonce


@pytest.fixture
def services():
    return MagicMock()


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as client:
        yield client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_well_formed_nonce_is_accepted_and_queued(client, services):
    nonce = generate_nonce()
    response = client.get(f"/confirm/{nonce.hex()}")
    assert response.status_code == 202
    assert response.json()["status"] == "accepted"
    services.worker.submit.assert_called_once_with(nonce)


@pytest.mark.parametrize("value", ["abc", "zz" * 32, "00" * 33])
def test_malformed_nonce_is_rejected(client, services, value):
    response = client.get(f"/confirm/{value}")
    assert response.status_code == 400
    services.worker.submit.assert_not_called()


def test_worker_runs_for_app_lifetime(services):
    with TestClient(create_app(services)):
        services.worker.start.assert_called_once()
    services.worker.stop.assert_called_once()

"""Tests for the analysis function endpoint and its JSON error contract."""

import uuid
from unittest.mock import AsyncMock

import pytest

from app.core.auth import get_optional_session
from app.core.exceptions import (
    AnalysisInProgressError,
    AnalysisParseError,
    APIClientError,
    ContractNotFoundError,
)
from app.dependencies import get_contract_analyzer
from app.main import app
from app.schemas.analysis import AnalysisResult
from app.services.contract_analyzer import ContractAnalyzer

URL = "/api/v1/analyze-contract"


@pytest.fixture
def analyzer():
    analyzer = AsyncMock(spec=ContractAnalyzer)
    app.dependency_overrides[get_contract_analyzer] = lambda: analyzer
    return analyzer


@pytest.fixture
def signed_in(user):
    app.dependency_overrides[get_optional_session] = lambda: user
    return user


def test_missing_token_is_401(test_client, analyzer):
    response = test_client.post(URL, json={"contractId": str(uuid.uuid4())})

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    analyzer.analyze.assert_not_awaited()


def test_invalid_token_is_401(test_client, analyzer):
    response = test_client.post(
        URL, json={"contractId": str(uuid.uuid4())}, headers={"Authorization": "Bearer expired.token.value"}
    )

    assert response.status_code == 401


@pytest.mark.parametrize(
    "body",
    [
        b"not json",
        b"[]",
        b"{}",
        b'{"contractId": "not-a-uuid"}',
        b'{"contractId": "0b7f4c3e-2d7a-4a8e-9a55-3f1d2c6b9e01", "leaseId": "nope"}',
    ],
    ids=["malformed", "array", "missing-id", "bad-uuid", "bad-lease"],
)
def test_bad_body_is_400(test_client, analyzer, signed_in, body):
    response = test_client.post(URL, content=body, headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert "contractId" in response.json()["error"]
    analyzer.analyze.assert_not_awaited()


def test_success_returns_validated_analysis(test_client, analyzer, signed_in, analysis_payload):
    contract_id = uuid.uuid4()
    analyzer.analyze.return_value = AnalysisResult.from_llm_payload(analysis_payload)

    response = test_client.post(URL, json={"contractId": str(contract_id)})

    assert response.status_code == 200
    body = response.json()
    assert body["contract_type"] == "service_contract"
    assert body["effective_date"] == "2024-04-01"
    assert [clause["clause_number"] for clause in body["clauses"]] == [1, 2]
    analyzer.analyze.assert_awaited_once_with(signed_in, contract_id, None)


def test_lease_token_passed_to_analyzer(test_client, analyzer, signed_in, analysis_payload):
    contract_id, lease_id = uuid.uuid4(), uuid.uuid4()
    analyzer.analyze.return_value = AnalysisResult.from_llm_payload(analysis_payload)

    response = test_client.post(URL, json={"contractId": str(contract_id), "leaseId": str(lease_id)})

    assert response.status_code == 200
    analyzer.analyze.assert_awaited_once_with(signed_in, contract_id, lease_id)


@pytest.mark.parametrize(
    "error, status_code",
    [
        (ContractNotFoundError("Contract not found"), 404),
        (AnalysisInProgressError("Analysis already in progress"), 409),
        (AnalysisParseError("No JSON object found in model reply"), 500),
        (APIClientError("API Client Error 401: invalid key"), 500),
    ],
)
def test_errors_carry_message(test_client, analyzer, signed_in, error, status_code):
    analyzer.analyze.side_effect = error

    response = test_client.post(URL, json={"contractId": str(uuid.uuid4())})

    assert response.status_code == status_code
    assert response.json() == {"error": error.message}

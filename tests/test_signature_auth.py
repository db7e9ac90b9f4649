# tests/test_signature_auth.py

"""
Tests for signature authentication of matched line items.
"""

import asyncio

import pytest

from app.core import signature_auth
from app.core.exceptions import SignatureResponseParseError, SignatureServiceUnavailable
from app.core.matching import match_line_item
from app.core.signature_auth import authenticate_results, status_for_score
from app.integrations import claude, storage
from app.models import LineItem, MatchResult, ReferenceRecord, STANDARD_POLICY


# ============================================
# Test Data
# ============================================

def make_result(
    name: str = "Jane Doe",
    signature_image_url: str = "https://files.example.com/captured/jane.png",
    reference_url: str = "https://files.example.com/reference/jane.png",
    line_index: int = 0,
) -> MatchResult:
    item = LineItem(
        name=name,
        address="1 Elm St",
        city="Springfield",
        zip="00001",
        signature_present="Yes",
        signature_image_url=signature_image_url,
    )
    record = ReferenceRecord(
        name=name,
        normalized_name=name.lower(),
        address="1 Elm St",
        city="Springfield",
        zip="00001",
        signature_reference_url=reference_url,
        scope="project",
    )
    return match_line_item(item, [record], STANDARD_POLICY, line_index=line_index)


def make_unmatched_result() -> MatchResult:
    item = LineItem(name="Nobody Known", signature_image_url="https://files.example.com/x.png")
    return match_line_item(item, [], STANDARD_POLICY)


@pytest.fixture
def comparison_service(monkeypatch):
    """
    Configure a fake comparison service.

    Scores are looked up by captured image URL; a callable value is
    awaited instead, so tests can sleep or raise.
    """
    scores = {}
    calls = []

    async def fake_fetch_image(url):
        return "image/png", url

    async def fake_compare(signature_image, reference_image, strict_mode=False):
        calls.append((signature_image[1], strict_mode))
        outcome = scores[signature_image[1]]
        if callable(outcome):
            return await outcome()
        return {"similarity_score": outcome, "analysis": "compared", "recommendation": "accept"}

    monkeypatch.setattr(claude, "is_configured", lambda: True)
    monkeypatch.setattr(claude, "compare_signatures", fake_compare)
    monkeypatch.setattr(storage, "fetch_image", fake_fetch_image)

    return scores, calls


# ============================================
# Status mapping
# ============================================

class TestStatusForScore:
    """Test similarity score thresholds."""

    @pytest.mark.parametrize("score,status", [
        (1.0, "authenticated"),
        (0.8, "authenticated"),
        (0.79, "review_needed"),
        (0.5, "review_needed"),
        (0.49, "suspicious"),
        (0.0, "suspicious"),
    ])
    def test_thresholds(self, score, status):
        assert status_for_score(score) == status


# ============================================
# Per-item outcomes
# ============================================

class TestAuthenticateResults:
    """Test authentication of a batch of match results."""

    @pytest.mark.asyncio
    async def test_unmatched_items_are_not_authenticated(self, comparison_service):
        results = await authenticate_results([make_unmatched_result()], timeout_seconds=1)

        assert results[0].signature_authentication is None

    @pytest.mark.asyncio
    async def test_no_reference_signature(self, comparison_service):
        _, calls = comparison_service

        results = await authenticate_results([make_result(reference_url=None)], timeout_seconds=1)

        auth = results[0].signature_authentication
        assert auth.status == "no_reference"
        assert auth.similarity_score == 0.0
        assert calls == []

    @pytest.mark.asyncio
    async def test_no_captured_signature(self, comparison_service):
        results = await authenticate_results([make_result(signature_image_url=None)], timeout_seconds=1)

        assert results[0].signature_authentication.status == "no_signature_image"

    @pytest.mark.asyncio
    async def test_service_not_configured(self, comparison_service, monkeypatch):
        monkeypatch.setattr(claude, "is_configured", lambda: False)

        results = await authenticate_results([make_result()], timeout_seconds=1)

        assert results[0].signature_authentication.status == "no_api_key"

    @pytest.mark.asyncio
    async def test_scores_mapped_to_status(self, comparison_service):
        scores, calls = comparison_service
        results = [
            make_result(name="Jane Doe", signature_image_url="jane", line_index=0),
            make_result(name="John Roe", signature_image_url="john", line_index=1),
            make_result(name="Ann Poe", signature_image_url="ann", line_index=2),
        ]
        scores.update({"jane": 0.92, "john": 0.6, "ann": 0.1})

        authenticated = await authenticate_results(results, strict_mode=True, timeout_seconds=5)

        assert [r.signature_authentication.status for r in authenticated] == [
            "authenticated", "review_needed", "suspicious",
        ]
        assert authenticated[0].signature_authentication.similarity_score == 0.92
        assert authenticated[0].signature_authentication.recommendation == "accept"
        assert all(strict for _, strict in calls)

    @pytest.mark.asyncio
    async def test_match_data_untouched(self, comparison_service):
        scores, _ = comparison_service
        result = make_result(signature_image_url="jane")
        scores["jane"] = 0.9

        authenticated = await authenticate_results([result], timeout_seconds=5)

        assert authenticated[0].found == result.found
        assert authenticated[0].match_score == result.match_score
        assert authenticated[0].best_match == result.best_match
        assert result.signature_authentication is None

    @pytest.mark.asyncio
    async def test_service_errors_recorded_per_item(self, comparison_service):
        scores, _ = comparison_service

        async def unavailable():
            raise SignatureServiceUnavailable("rate limited")

        async def unparseable():
            raise SignatureResponseParseError("No JSON found in response")

        scores.update({"a": unavailable, "b": unparseable, "c": 0.95})
        results = [
            make_result(signature_image_url="a", line_index=0),
            make_result(signature_image_url="b", line_index=1),
            make_result(signature_image_url="c", line_index=2),
        ]

        authenticated = await authenticate_results(results, timeout_seconds=5)

        assert [r.signature_authentication.status for r in authenticated] == [
            "ai_error", "parse_error", "authenticated",
        ]
        assert "rate limited" in authenticated[0].signature_authentication.analysis

    @pytest.mark.asyncio
    async def test_unexpected_service_failure_is_error(self, comparison_service):
        scores, _ = comparison_service

        async def malformed_response():
            raise ValueError("Data returned by API invalid for expected schema")

        scores.update({"a": malformed_response, "b": 0.9})
        results = [
            make_result(signature_image_url="a", line_index=0),
            make_result(signature_image_url="b", line_index=1),
        ]

        authenticated = await authenticate_results(results, timeout_seconds=5)

        assert authenticated[0].signature_authentication.status == "error"
        assert "invalid for expected schema" in authenticated[0].signature_authentication.analysis
        assert authenticated[1].signature_authentication.status == "authenticated"

    @pytest.mark.asyncio
    async def test_image_fetch_failure_is_error(self, comparison_service, monkeypatch):
        async def failing_fetch(url):
            raise storage.StorageError(f"Could not fetch {url}: HTTP 404")

        monkeypatch.setattr(storage, "fetch_image", failing_fetch)

        results = await authenticate_results([make_result()], timeout_seconds=1)

        assert results[0].signature_authentication.status == "error"


# ============================================
# Concurrency and deadline
# ============================================

class TestAuthenticationDeadline:
    """Test the bounded worker pool and phase deadline."""

    @pytest.mark.asyncio
    async def test_order_preserved_under_concurrency(self, comparison_service):
        scores, _ = comparison_service

        def delayed(score, delay):
            async def _outcome():
                await asyncio.sleep(delay)
                return {"similarity_score": score, "analysis": ""}
            return _outcome

        scores.update({
            "first": delayed(0.9, 0.05),
            "second": delayed(0.6, 0.01),
            "third": delayed(0.1, 0.0),
        })
        results = [
            make_result(signature_image_url=url, line_index=i)
            for i, url in enumerate(["first", "second", "third"])
        ]

        authenticated = await authenticate_results(results, timeout_seconds=5, concurrency=2)

        assert [r.line_index for r in authenticated] == [0, 1, 2]
        assert [r.signature_authentication.status for r in authenticated] == [
            "authenticated", "review_needed", "suspicious",
        ]

    @pytest.mark.asyncio
    async def test_unfinished_items_time_out(self, comparison_service):
        scores, _ = comparison_service

        async def hangs():
            await asyncio.sleep(10)
            return {"similarity_score": 1.0}

        scores.update({"fast": 0.9, "slow": hangs})
        results = [
            make_result(signature_image_url="fast", line_index=0),
            make_result(signature_image_url="slow", line_index=1),
            make_unmatched_result(),
        ]

        authenticated = await authenticate_results(results, timeout_seconds=0.2)

        assert authenticated[0].signature_authentication.status == "authenticated"
        assert authenticated[1].signature_authentication.status == "timeout"
        assert authenticated[1].found is True
        assert authenticated[2].signature_authentication is None

    @pytest.mark.asyncio
    async def test_defaults_come_from_settings(self, comparison_service, monkeypatch):
        scores, _ = comparison_service
        scores["jane"] = 0.85
        monkeypatch.setattr(signature_auth.settings, "signature_auth_timeout_seconds", 5.0)
        monkeypatch.setattr(signature_auth.settings, "signature_auth_concurrency", 1)

        authenticated = await authenticate_results([make_result(signature_image_url="jane")])

        assert authenticated[0].signature_authentication.status == "authenticated"

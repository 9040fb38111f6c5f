"""
Tests for the result envelope and its single builder, wrap_result().
"""
from datetime import datetime

import pytest
from pydantic import ValidationError

from portalscrape.scrapers.base import ScraperMetadata, wrap_result


class TestWrapResult:
    def test_success_with_data(self):
        result = wrap_result("test-portal", True, {"balance": 100})
        assert result.success is True
        assert result.portal == "test-portal"
        assert result.method == "scrape"
        assert result.data == {"balance": 100}
        assert result.error is None
        assert isinstance(result.scraped_at, datetime)
        assert result.scraped_at.tzinfo is not None

    def test_success_without_data_omits_data_and_error(self):
        body = wrap_result("test-portal", True).to_response()
        assert body["success"] is True
        assert "data" not in body
        assert "error" not in body

    def test_failure_carries_error_only(self):
        result = wrap_result("test-portal", False, error="x")
        body = result.to_response()
        assert result.error == "x"
        assert result.data is None
        assert body["error"] == "x"
        assert "data" not in body

    def test_response_keys_are_camel_case(self):
        body = wrap_result("test-portal", True, {"a": 1}).to_response()
        assert set(body) == {"success", "data", "method", "portal", "scrapedAt"}
        assert body["method"] == "scrape"

    def test_data_and_error_are_exclusive(self):
        with pytest.raises(ValidationError):
            wrap_result("test-portal", False, {"partial": True}, "boom")


class TestScraperMetadata:
    def test_is_immutable(self):
        meta = ScraperMetadata(id="a", name="A", category="utility", version="1", requires_auth=False)
        with pytest.raises(ValidationError):
            meta.id = "b"

    @pytest.mark.parametrize("bad_id", ["Court Docket", "a/b", "", "x" * 65])
    def test_rejects_bad_ids(self, bad_id):
        with pytest.raises(ValidationError):
            ScraperMetadata(id=bad_id, name="A", category="utility", version="1", requires_auth=False)

    def test_serializes_camel_case(self):
        meta = ScraperMetadata(
            id="comed", name="ComEd", category="utility", version="1",
            requires_auth=True, credential_keys=["comed:username"],
        )
        dumped = meta.model_dump(mode="json", by_alias=True)
        assert dumped["requiresAuth"] is True
        assert dumped["credentialKeys"] == ["comed:username"]
        assert dumped["category"] == "utility"

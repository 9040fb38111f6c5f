"""
Integration tests for the public endpoints: health, status, capabilities.
"""
from portalscrape.scrapers.base import ScraperMetadata, wrap_result
from portalscrape.scrapers.registry import ScraperRegistry, get_registry
from portalscrape.api.main import app


class TestHealth:
    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "ok"
        assert data["service"] == "portalscrape"
        assert data["version"]
        assert data["timestamp"]


class TestStatus:
    def test_status_shape(self, client):
        data = client.get("/api/v1/status").json()
        assert set(data) == {"name", "version", "environment", "canonicalUri", "tier"}
        assert data["name"] == "portalscrape"


class TestCapabilities:
    def test_lists_registered_scrapers_in_order(self, client):
        data = client.get("/api/v1/capabilities").json()
        assert data["service"] == "portalscrape"
        assert [s["id"] for s in data["scrapers"]] == [
            "court-docket", "court-name-search", "comed", "peoples-gas", "cook-county-tax", "mr-cooper",
        ]

    def test_metadata_fields(self, client):
        scrapers = {s["id"]: s for s in client.get("/api/v1/capabilities").json()["scrapers"]}
        comed = scrapers["comed"]
        assert comed["category"] == "utility"
        assert comed["requiresAuth"] is True
        assert comed["credentialKeys"] == ["comed:username", "comed:password"]
        assert "credentialKeys" not in scrapers["court-docket"]

    def test_reflects_registry_override(self, client):
        class OnlyPlugin:
            metadata = ScraperMetadata(
                id="hoa-portal", name="HOA", category="hoa", version="2.0.0", requires_auth=False,
            )

            async def execute(self, context, payload):
                return wrap_result("hoa-portal", True)

        registry = ScraperRegistry()
        registry.register(OnlyPlugin())
        app.dependency_overrides[get_registry] = lambda: registry

        data = client.get("/api/v1/capabilities").json()
        assert data["scrapers"] == [{
            "id": "hoa-portal",
            "name": "HOA",
            "category": "hoa",
            "version": "2.0.0",
            "requiresAuth": False,
        }]

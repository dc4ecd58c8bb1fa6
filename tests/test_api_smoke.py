"""
Smoke tests for the What's On Where API.

Upstream clients are replaced with mocks, so no network or API keys are needed.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests
from fastapi.testclient import TestClient

from api import deps
from api.main import app
from api.routers import debug, people, search, titles
from wow_backend.integrations.tmdb.client import TmdbClientError

REPO_ROOT = Path(__file__).resolve().parents[1]
SHOW_SAMPLE = json.loads(
    (REPO_ROOT / "tests" / "fixtures" / "streaming_availability" / "show_sample.json").read_text(encoding="utf-8")
)

MATRIX_SUMMARY = {
    "id": 603,
    "media_type": "movie",
    "title": "The Matrix",
    "overview": "Reality is a simulation.",
    "poster_path": "/matrix.jpg",
    "release_year": 1999,
    "providers": {"flatrate": [{"provider_id": 1899, "provider_name": "Max", "logo_path": "/max.jpg"}]},
}


@pytest.fixture
def http_session():
    """Create a mock outbound HTTP session."""
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(http_session, monkeypatch: pytest.MonkeyPatch):
    """Create a test client with the outbound session mocked and region config cleared."""
    monkeypatch.delenv("DEV_REGION", raising=False)
    monkeypatch.delenv("DEFAULT_REGION", raising=False)
    deps.get_dev_region.cache_clear()
    deps.get_default_region.cache_clear()
    app.dependency_overrides[deps.get_http_session] = lambda: http_session
    yield TestClient(app)
    app.dependency_overrides.clear()
    deps.get_dev_region.cache_clear()
    deps.get_default_region.cache_clear()


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_root_returns_ok(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "wow-backend"

    def test_health_returns_healthy(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_manifest(self, client: TestClient):
        response = client.get("/manifest.webmanifest")
        assert response.status_code == 200
        data = response.json()
        assert data["short_name"] == "WoW"
        assert data["display"] == "standalone"


class TestRegionCookie:
    """Test the region cookie middleware and explicit region selection."""

    def test_first_visit_sets_fallback_region(self, client: TestClient):
        response = client.get("/health")
        assert response.cookies.get("wow_region") == "GB"

    def test_edge_header_wins_over_fallback(self, client: TestClient):
        response = client.get("/health", headers={"x-vercel-ip-country": "ca"})
        assert response.cookies.get("wow_region") == "CA"

    def test_existing_cookie_is_not_rewritten(self, client: TestClient):
        response = client.get("/health", headers={"Cookie": "wow_region=US"})
        assert "wow_region" not in response.headers.get("set-cookie", "")

    def test_query_override_rewrites_cookie(self, client: TestClient):
        response = client.get("/health?region=de", headers={"Cookie": "wow_region=US"})
        assert response.cookies.get("wow_region") == "DE"

    def test_post_region_sets_cookie(self, client: TestClient):
        response = client.post("/api/region", json={"region": "fr"})
        assert response.status_code == 200
        assert response.json() == {"ok": True, "region": "FR"}
        cookies = [v for v in response.headers.get_list("set-cookie") if v.startswith("wow_region=")]
        assert len(cookies) == 1
        assert cookies[0].startswith("wow_region=FR")

    @pytest.mark.parametrize("body", [{"region": "FRA"}, {}, ["GB"]])
    def test_post_region_rejects_invalid(self, client: TestClient, body):
        response = client.post("/api/region", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid region"

    def test_post_region_rejects_non_json(self, client: TestClient):
        response = client.post("/api/region", content=b"region=GB")
        assert response.status_code == 400


class TestSearchEndpoint:
    """Test search with TMDb calls mocked."""

    def test_missing_query_returns_400(self, client: TestClient):
        response = client.get("/api/search", params={"query": "   "})
        assert response.status_code == 400
        assert response.json()["detail"] == "Missing query parameter"

    def test_invalid_only_returns_400(self, client: TestClient):
        response = client.get("/api/search", params={"query": "matrix", "only": "network"})
        assert response.status_code == 400

    def test_search_multi_uses_request_region(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        search_multi = MagicMock(return_value=[MATRIX_SUMMARY])
        monkeypatch.setattr(search, "search_multi", search_multi)

        response = client.get("/api/search", params={"query": " matrix ", "region": "gb"})

        assert response.status_code == 200
        assert response.json() == {"results": [MATRIX_SUMMARY]}
        args, kwargs = search_multi.call_args
        assert args == ("matrix",)
        assert kwargs["region"] == "GB"

    def test_search_region_falls_back_to_cookie_then_default(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ):
        search_multi = MagicMock(return_value=[])
        monkeypatch.setattr(search, "search_multi", search_multi)

        client.get("/api/search", params={"query": "x"}, headers={"Cookie": "wow_region=IE"})
        assert search_multi.call_args.kwargs["region"] == "IE"

        TestClient(app).get("/api/search", params={"query": "x"})
        assert search_multi.call_args.kwargs["region"] == "US"

    def test_search_single_media_type(self, client: TestClient, monkeypatch: pytest.MonkeyPatch, http_session):
        show = {**MATRIX_SUMMARY, "id": 1399, "media_type": "tv", "title": "Game of Thrones", "providers": None}
        search_titles = MagicMock(return_value=[show])
        search_multi = MagicMock()
        monkeypatch.setattr(search, "search_titles", search_titles)
        monkeypatch.setattr(search, "search_multi", search_multi)

        response = client.get("/api/search", params={"query": "thrones", "only": "TV", "region": "de"})

        assert response.status_code == 200
        assert response.json()["results"][0]["media_type"] == "tv"
        args, kwargs = search_titles.call_args
        assert args == ("thrones", "tv")
        assert kwargs["region"] == "DE"
        assert kwargs["session"] is http_session
        search_multi.assert_not_called()

    def test_search_people(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        person = {"id": 4724, "name": "Kevin Bacon", "profile_path": None, "known_for_department": "Acting"}
        monkeypatch.setattr(search, "search_people", MagicMock(return_value=[person]))

        response = client.get("/api/search", params={"query": "bacon", "only": "person"})

        assert response.status_code == 200
        assert response.json()["results"] == [person]

    def test_upstream_failure_returns_502(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(
            search, "search_multi", MagicMock(side_effect=TmdbClientError("boom", status_code=500))
        )
        response = client.get("/api/search", params={"query": "matrix"})
        assert response.status_code == 502

    def test_missing_api_key_returns_500(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(search, "search_multi", MagicMock(side_effect=RuntimeError("TMDB API key is missing")))
        response = client.get("/api/search", params={"query": "matrix"})
        assert response.status_code == 500


class TestTitleEndpoint:
    """Test title details with every upstream call mocked."""

    @pytest.fixture
    def upstream(self, monkeypatch: pytest.MonkeyPatch) -> dict[str, MagicMock]:
        details = {k: v for k, v in MATRIX_SUMMARY.items() if k != "providers"}
        mocks = {
            "fetch_details": MagicMock(
                return_value={**details, "genres": [{"id": 28, "name": "Action"}], "runtime": 136}
            ),
            "fetch_credits": MagicMock(
                return_value={
                    "cast": [{"id": 6384, "name": "Keanu Reeves", "character": "Neo", "profile_path": None}],
                    "crew": [],
                }
            ),
            "fetch_watch_providers": MagicMock(return_value=MATRIX_SUMMARY["providers"]),
            "fetch_external_ids": MagicMock(return_value={"id": 603, "imdb_id": "tt0133093"}),
            "fetch_imdb_summary": MagicMock(return_value={"imdbID": "tt0133093", "imdbRating": "8.7"}),
            "fetch_streaming_availability": MagicMock(return_value=SHOW_SAMPLE),
        }
        for name, mock in mocks.items():
            monkeypatch.setattr(titles, name, mock)
        return mocks

    @pytest.mark.parametrize("path", ["/api/title/person/603", "/api/title/movie/abc"])
    def test_invalid_type_or_id_returns_400(self, client: TestClient, path: str):
        response = client.get(path)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid type or id"

    def test_title_payload(self, client: TestClient, upstream: dict[str, MagicMock]):
        response = client.get("/api/title/movie/603", params={"region": "US"})

        assert response.status_code == 200
        data = response.json()
        assert data["details"]["title"] == "The Matrix"
        assert data["details"]["genres"] == [{"id": 28, "name": "Action"}]
        assert data["credits"]["cast"][0]["character"] == "Neo"
        assert data["providers"]["flatrate"][0]["provider_name"] == "Max"
        assert data["external"]["imdb_id"] == "tt0133093"
        assert data["imdbSummary"]["imdbRating"] == "8.7"
        assert data["streamingAvailability"]["imdbId"] == "tt0133093"
        assert data["watchNow"]["service"] == "netflix"

        assert upstream["fetch_watch_providers"].call_args.kwargs["region"] == "US"
        assert upstream["fetch_streaming_availability"].call_args.args == ("tt0133093", "US")

    def test_absent_provider_groups_are_omitted(self, client: TestClient, upstream: dict[str, MagicMock]):
        providers = client.get("/api/title/movie/603").json()["providers"]

        assert set(providers) == {"flatrate"}
        assert "buy" not in providers
        assert "rent" not in providers

    def test_parallel_fetches_use_their_own_sessions(
        self, client: TestClient, upstream: dict[str, MagicMock], http_session
    ):
        client.get("/api/title/movie/603")

        fanned_out = ("fetch_details", "fetch_credits", "fetch_watch_providers", "fetch_external_ids")
        sessions = [upstream[name].call_args.kwargs["session"] for name in fanned_out]
        assert all(isinstance(s, requests.Session) for s in sessions)
        assert all(s is not http_session for s in sessions)
        assert len({id(s) for s in sessions}) == len(fanned_out)
        assert upstream["fetch_imdb_summary"].call_args.kwargs["session"] is http_session


    def test_preferred_provider_picks_watch_now(self, client: TestClient, upstream: dict[str, MagicMock]):
        response = client.get(
            "/api/title/movie/603", params={"region": "US", "preferredProvider": "Amazon Prime Video"}
        )
        assert response.json()["watchNow"]["service"] == "prime"

    def test_no_imdb_id_skips_enrichment(self, client: TestClient, upstream: dict[str, MagicMock]):
        upstream["fetch_external_ids"].return_value = {"id": 603, "imdb_id": None}

        data = client.get("/api/title/movie/603").json()

        assert data["imdbSummary"] is None
        assert data["streamingAvailability"] is None
        assert data["watchNow"] is None
        upstream["fetch_imdb_summary"].assert_not_called()

    @pytest.mark.parametrize(("status_code", "expected"), [(404, 404), (500, 502), (None, 502)])
    def test_tmdb_errors_map_to_http(
        self, client: TestClient, upstream: dict[str, MagicMock], status_code, expected: int
    ):
        upstream["fetch_details"].side_effect = TmdbClientError("failed", status_code=status_code)
        response = client.get("/api/title/tv/1399")
        assert response.status_code == expected


class TestPersonEndpoint:
    """Test person page data."""

    def test_person_payload(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(
            people,
            "fetch_person",
            MagicMock(return_value={"id": 4724, "name": "Kevin Bacon", "profile_path": None, "biography": "Actor."}),
        )
        monkeypatch.setattr(
            people,
            "fetch_person_combined_credits",
            MagicMock(
                return_value=[
                    {
                        "id": 1891,
                        "media_type": "movie",
                        "title": "Footloose",
                        "poster_path": None,
                        "release_year": 1984,
                        "character": "Ren",
                    }
                ]
            ),
        )

        response = client.get("/api/person/4724")

        assert response.status_code == 200
        data = response.json()
        assert data["person"]["name"] == "Kevin Bacon"
        assert data["credits"][0]["title"] == "Footloose"

    def test_invalid_person_id_returns_400(self, client: TestClient):
        assert client.get("/api/person/bacon").status_code == 400


class TestAffiliateRedirects:
    """Test /go/{provider} redirects."""

    @pytest.fixture(autouse=True)
    def _affiliate_env(self, monkeypatch: pytest.MonkeyPatch):
        for name in ("AMAZON_TAG_US", "AMAZON_TAG_GB", "APPLE_AT", "NOW_AFFILIATE_GB"):
            monkeypatch.delenv(name, raising=False)

    def test_redirects_to_landing_page(self, client: TestClient, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.INFO, logger="api.routers.affiliates"):
            response = client.get(
                "/go/appletv",
                params={"id": "603", "type": "movie", "region": "US"},
                headers={"user-agent": "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)"},
                follow_redirects=False,
            )

        assert response.status_code == 302
        assert response.headers["location"] == "https://tv.apple.com/"
        assert any("[affiliate-go]" in r.getMessage() and "platform=ios" in r.getMessage() for r in caplog.records)

    def test_prime_does_not_need_title_id(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("AMAZON_TAG_GB", "wow-21")
        response = client.get("/go/prime", params={"region": "GB"}, follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "https://www.amazon.co.uk/gp/video/storefront?tag=wow-21"

    def test_missing_id_returns_400(self, client: TestClient):
        response = client.get("/go/now", params={"id": "abc", "region": "GB"}, follow_redirects=False)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid params"

    @pytest.mark.parametrize("provider", ["netflix", "prime"])
    def test_unmapped_provider_returns_404(self, client: TestClient, provider: str):
        response = client.get(f"/go/{provider}", params={"id": "1", "region": "US"}, follow_redirects=False)
        assert response.status_code == 404


class TestAnalyticsEndpoint:
    """Test the game-play log endpoint."""

    def test_logs_game_play(self, client: TestClient, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.INFO, logger="wow_backend.analytics"):
            response = client.post("/api/analytics/log", json={"game": "pymr", "score": "12"})

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        lines = [r.getMessage() for r in caplog.records if r.getMessage().startswith("[game-play] ")]
        entry = json.loads(lines[-1].removeprefix("[game-play] "))
        assert entry["game"] == "pymr"
        assert entry["score"] == 12
        assert entry["ip"] == "testclient"

    def test_tolerates_bad_body(self, client: TestClient):
        response = client.post("/api/analytics/log", content=b"not json")
        assert response.status_code == 200
        assert response.json() == {"ok": True}


class TestDebugEndpoints:
    """Test streaming availability debug endpoints."""

    def test_streaming_requires_input(self, client: TestClient):
        assert client.get("/api/debug/streaming").status_code == 400

    def test_streaming_summary(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(debug, "fetch_streaming_availability", MagicMock(return_value=SHOW_SAMPLE))

        response = client.get("/api/debug/streaming", params={"imdbId": "tt0133093", "country": "gb"})

        assert response.status_code == 200
        data = response.json()
        assert data["country"] == "GB"
        assert data["hasData"] is True
        assert {row["country"] for row in data["services"]} == {"US", "GB"}

    def test_streaming_resolves_imdb_id(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(debug, "fetch_external_ids", MagicMock(return_value={"imdb_id": None}))
        response = client.get("/api/debug/streaming", params={"type": "tv", "id": "1399"})
        assert response.status_code == 404

    def test_raw_requires_imdb_id(self, client: TestClient):
        assert client.get("/api/debug/streaming/raw").status_code == 400

    @pytest.mark.parametrize(
        ("error", "expected"),
        [(RuntimeError("RAPIDAPI_STREAMINGAVAIL_KEY not set"), 500), (requests.ConnectionError("down"), 502)],
    )
    def test_raw_errors(self, client: TestClient, monkeypatch: pytest.MonkeyPatch, error, expected: int):
        monkeypatch.setattr(debug, "fetch_streaming_availability_raw", MagicMock(side_effect=error))
        response = client.get("/api/debug/streaming/raw", params={"imdbId": "tt0133093"})
        assert response.status_code == expected


class TestCORSConfiguration:
    """Test CORS is properly configured."""

    def test_cors_headers_present(self, client: TestClient):
        response = client.options(
            "/api/search",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert response.status_code == 200
        assert "access-control-allow-origin" in response.headers

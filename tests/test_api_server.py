"""Tests for the Flask API server."""

import pytest

import api_server
from medterm.core.engine import TerminologyEngine


@pytest.fixture
def client():
    api_server.initialize_components(TerminologyEngine())
    api_server.app.config["TESTING"] = True
    with api_server.app.test_client() as client:
        yield client
    api_server.engine = None


class TestAPIServer:
    """Tests for the HTTP endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"

    def test_standardize_single(self, client):
        response = client.post("/api/standardize", json={"term": "period pain"})
        assert response.status_code == 200
        data = response.get_json()
        assert data["standard_term"] == "Dysmenorrhea"
        assert data["entity_key"] == "DYSMENORRHEA"
        assert data["locale"] == "en"

    def test_standardize_batch(self, client):
        response = client.post("/api/standardize", json={"terms": ["PMS", "月经痛"], "locale": "zh"})
        assert response.status_code == 200
        assert response.get_json()["results"] == {"PMS": "经前期综合征", "月经痛": "痛经"}

    def test_empty_batch_unsupported_locale(self, client):
        response = client.post("/api/standardize", json={"terms": [], "locale": "fr"})
        assert response.status_code == 400
        assert response.get_json()["supported_locales"] == ["en", "zh"]

    def test_annotate_lone_surrogate(self, client):
        response = client.post(
            "/api/annotate",
            data='{"text": "PMS \\ud800"}',
            content_type="application/json",
        )
        assert response.status_code == 200
        assert 'data-entity-key="PMS">PMS</span>' in response.get_json()["annotated"]

    def test_standardize_bad_batch(self, client):
        response = client.post("/api/standardize", json={"terms": "PMS"})
        assert response.status_code == 400

    def test_standardize_missing_term(self, client):
        assert client.post("/api/standardize", json={}).status_code == 400

    def test_non_json_body(self, client):
        response = client.post("/api/standardize", data="term=PMS")
        assert response.status_code == 400

    def test_unsupported_locale(self, client):
        response = client.post("/api/standardize", json={"term": "PMS", "locale": "fr"})
        assert response.status_code == 400
        assert response.get_json()["supported_locales"] == ["en", "zh"]

    def test_synonyms(self, client):
        response = client.post("/api/synonyms", json={"term": "PMS", "locale": "zh"})
        assert response.status_code == 200
        assert response.get_json()["synonyms"][0] == "经前期综合征"

    def test_equivalent(self, client):
        response = client.post("/api/equivalent", json={"term_a": "period pain", "term_b": "月经痛"})
        assert response.get_json()["equivalent"] is True

    def test_equivalent_missing_terms(self, client):
        assert client.post("/api/equivalent", json={"term_a": "PMS"}).status_code == 400

    def test_annotate(self, client):
        response = client.post("/api/annotate", json={
            "text": "她有痛经。", "locale": "zh", "include_terms": True,
        })
        assert response.status_code == 200
        data = response.get_json()
        assert data["annotated"] == '她有<span data-medical-term="痛经" data-entity-key="DYSMENORRHEA">痛经</span>。'
        assert data["terms"] == [{"standard_term": "痛经", "entity_key": "DYSMENORRHEA"}]

    def test_annotate_missing_text(self, client):
        assert client.post("/api/annotate", json={"locale": "en"}).status_code == 400

    def test_schema(self, client):
        response = client.post("/api/schema", json={
            "title": "Period pain",
            "description": "Guide",
            "condition": "DYSMENORRHEA",
            "citations": ["ACOG_DYSMENORRHEA"],
            "last_reviewed": "2024-01-15",
        })
        assert response.status_code == 200
        data = response.get_json()
        assert data["@type"] == "MedicalWebPage"
        assert data["lastReviewed"] == "2024-01-15"

    def test_schema_missing_fields(self, client):
        response = client.post("/api/schema", json={"description": "Guide"})
        assert response.status_code == 400
        assert "title" in response.get_json()["error"]

    def test_schema_unknown_condition(self, client):
        response = client.post("/api/schema", json={"title": "T", "condition": "NOT_REAL"})
        assert response.status_code == 404

    def test_schema_unknown_citation(self, client):
        response = client.post("/api/schema", json={
            "title": "T", "condition": "PMS", "citations": ["NOT_REAL"],
        })
        assert response.status_code == 404

    def test_stats_and_clear(self, client):
        client.post("/api/annotate", json={"text": "PMS"})
        stats = client.get("/api/stats").get_json()
        assert stats["caches"]["text_cache_size"] == 1
        assert stats["dictionary"]["concepts"] == 10

        cleared = client.post("/api/cache/clear").get_json()
        assert cleared["success"] is True
        assert cleared["caches"]["text_cache_size"] == 0

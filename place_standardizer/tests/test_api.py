"""
Tests for the HTTP API, with the engine injected over the sample gazetteer.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import OXFORD_ENGLAND, OXFORD_OHIO, SPRINGFIELD
from place_standardizer.api import app
from place_standardizer.engine import Standardizer


@pytest.fixture(scope="module")
def client(rules, sample_store):
    app.state.standardizer = Standardizer(rules, sample_store)
    with TestClient(app) as c:
        yield c
    app.state.standardizer = None


class TestStandardize:
    def test_single_result(self, client):
        resp = client.get("/standardize", params={"q": "Springfield, Sangamon, Illinois"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["mode"] == "best"
        [result] = body["results"]
        assert result["place"]["id"] == SPRINGFIELD
        assert result["place"]["full_name"] == "Springfield, Sangamon, Illinois, United States"

    def test_multiple_results(self, client):
        resp = client.get("/standardize", params={"q": "Oxford", "num_results": 2})
        assert [r["place"]["id"] for r in resp.json()["results"]] == [OXFORD_OHIO, OXFORD_ENGLAND]

    def test_default_country(self, client):
        resp = client.get("/standardize", params={"q": "Oxford", "default_country": "England"})
        assert [r["place"]["id"] for r in resp.json()["results"]] == [OXFORD_ENGLAND]

    def test_required_mode(self, client):
        resp = client.get("/standardize", params={"q": "Atlantisville, Illinois", "mode": "required"})
        assert resp.status_code == 200
        assert resp.json()["results"] == []

    def test_too_many_results(self, client):
        resp = client.get("/standardize", params={"q": "Oxford", "num_results": 1000})
        assert resp.status_code == 400

    def test_missing_query(self, client):
        assert client.get("/standardize").status_code == 422

    def test_bad_mode(self, client):
        assert client.get("/standardize", params={"q": "Oxford", "mode": "fuzzy"}).status_code == 422


class TestPlace:
    def test_found(self, client):
        resp = client.get(f"/place/{SPRINGFIELD}")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Springfield"
        assert resp.json()["located_in_id"] == 1502

    def test_not_found(self, client):
        assert client.get("/place/999999").status_code == 404


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "backend": "memory"}

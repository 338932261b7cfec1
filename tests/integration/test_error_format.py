"""Integration tests for the uniform error body."""

from __future__ import annotations

from uuid import uuid4

import pytest

pytestmark = pytest.mark.integration


class TestErrorFormat:
    def test_malformed_json(self, api_client):
        response = api_client.post(
            "/api/v1/products/", data="{not json", content_type="application/json"
        )
        assert response.status_code == 400
        assert response.data["type"] == "client_error"
        assert response.data["errors"][0]["code"] == "parse_error"

    def test_domain_not_found_body(self, api_client):
        missing = uuid4()
        response = api_client.get(f"/api/v1/products/{missing}/")

        assert response.status_code == 404
        error = response.data["errors"][0]
        assert response.data["type"] == "client_error"
        assert error["resource"] == "product"
        assert error["id"] == str(missing)
        assert str(missing) in error["detail"]

    def test_validation_errors_are_listed_per_field(self, api_client):
        response = api_client.post("/api/v1/products/", {}, format="json")
        assert response.status_code == 400
        assert response.data["type"] == "validation_error"
        attrs = {error["attr"] for error in response.data["errors"]}
        assert {"name", "price", "category"} <= attrs

    def test_method_not_allowed(self, api_client):
        response = api_client.put("/api/v1/cart/some-session/items/", {}, format="json")
        assert response.status_code == 405
        assert response.data["errors"][0]["code"] == "method_not_allowed"

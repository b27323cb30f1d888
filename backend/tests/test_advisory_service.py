import json
from decimal import Decimal

import httpx
import pytest

from tillpoint.models import Product
from tillpoint.services.advisory_service import AdvisorClient


PRODUCTS = [
    Product(id="1", name="Coffee", category="Beverages", price=Decimal("24.50"), stock=3, min_stock=10),
]


def _client(handler):
    return AdvisorClient(
        "http://advisor.test/generate",
        api_key="k",
        model="test-model",
        transport=httpx.MockTransport(handler),
    )


def _reply(text):
    def handler(request):
        return httpx.Response(200, json={"text": text})
    return handler


class TestAdvisorClient:
    def test_disabled_without_url(self, app):
        client = AdvisorClient("")
        assert client.enabled is False
        assert client.insights([], PRODUCTS) == []
        assert client.predictions(PRODUCTS) == []
        assert client.chat("hi", [], PRODUCTS) is None

    def test_request_shape(self, app):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"text": "[]"})

        _client(handler).predictions(PRODUCTS)

        assert seen["auth"] == "Bearer k"
        assert seen["body"]["model"] == "test-model"
        assert seen["body"]["responseMimeType"] == "application/json"
        assert "Coffee" in seen["body"]["contents"]

    def test_insights_drop_malformed_items(self, app):
        payload = json.dumps([
            {"title": "Coffee sells", "description": "d", "impact": "positive", "recommendation": "r"},
            {"title": "Bad impact", "description": "d", "impact": "huge", "recommendation": "r"},
            "not an object",
        ])

        result = _client(_reply(payload)).insights([], PRODUCTS)

        assert [i["title"] for i in result] == ["Coffee sells"]

    def test_predictions_are_coerced(self, app):
        payload = json.dumps([
            {"productId": 1, "productName": "Coffee", "currentStock": "3",
             "predictedDaysLeft": 2, "status": "critical"},
            {"productId": "2", "status": "safe"},
        ])

        result = _client(_reply(payload)).predictions(PRODUCTS)

        assert result == [{
            "productId": "1", "productName": "Coffee", "currentStock": 3,
            "predictedDaysLeft": 2.0, "status": "critical",
        }]

    @pytest.mark.parametrize("handler", [
        lambda request: httpx.Response(500, json={"error": "boom"}),
        lambda request: httpx.Response(200, json={"nope": 1}),
        lambda request: httpx.Response(200, json={"text": "not json"}),
        lambda request: httpx.Response(200, json={"text": "{\"a\": 1}"}),
    ])
    def test_failures_degrade_to_empty(self, app, handler):
        assert _client(handler).insights([], PRODUCTS) == []

    def test_network_error_degrades(self, app):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        client = _client(handler)
        assert client.predictions(PRODUCTS) == []
        assert client.chat("How is coffee doing?", [], PRODUCTS) is None

    def test_chat_returns_text(self, app):
        assert _client(_reply("Restock coffee.")).chat("What now?", [], PRODUCTS) == "Restock coffee."

# Overview: Optional AI advisory client; best-effort insights, stock predictions and chat.

"""
The advisor receives read-only snapshots (recent sales, full product list)
and returns structured insights, stock predictions, or free text.

Every call is best-effort: when the advisor is unconfigured, unreachable,
slow, or returns malformed data, the result degrades to an empty list (or
None for chat) and a warning is logged. Nothing here may block checkout or
catalog operations.

Wire protocol: POST {ADVISOR_API_URL} with
  {"model": ..., "contents": <prompt>, "responseMimeType": ...}
and a JSON response {"text": <model output>}.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
from flask import current_app

from ..models import Product, Sale

IMPACTS = ("positive", "negative", "neutral")
PREDICTION_STATUSES = ("critical", "warning", "safe")

INSIGHT_FIELDS = ("title", "description", "impact", "recommendation")
PREDICTION_FIELDS = ("productId", "productName", "currentStock", "predictedDaysLeft", "status")


def _clean_insight(item: Any) -> dict | None:
    if not isinstance(item, dict):
        return None
    if any(not isinstance(item.get(f), str) for f in INSIGHT_FIELDS):
        return None
    if item["impact"] not in IMPACTS:
        return None
    return {f: item[f] for f in INSIGHT_FIELDS}


def _clean_prediction(item: Any) -> dict | None:
    if not isinstance(item, dict):
        return None
    if not all(f in item for f in PREDICTION_FIELDS):
        return None
    if item["status"] not in PREDICTION_STATUSES:
        return None
    try:
        return {
            "productId": str(item["productId"]),
            "productName": str(item["productName"]),
            "currentStock": int(item["currentStock"]),
            "predictedDaysLeft": float(item["predictedDaysLeft"]),
            "status": item["status"],
        }
    except (TypeError, ValueError):
        return None


class AdvisorClient:
    def __init__(
        self,
        base_url: str,
        *,
        api_key: str = "",
        model: str = "",
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = (base_url or "").strip()
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _generate(self, prompt: str, mime_type: str) -> str:
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            response = client.post(
                self.base_url,
                headers=self._headers(),
                json={"model": self.model, "contents": prompt, "responseMimeType": mime_type},
            )
            response.raise_for_status()
            body = response.json()
        text = body.get("text") if isinstance(body, dict) else None
        if not isinstance(text, str):
            raise ValueError("Advisor response has no text")
        return text

    def _generate_list(self, prompt: str, cleaner, label: str) -> list[dict]:
        if not self.enabled:
            return []
        try:
            data = json.loads(self._generate(prompt, "application/json") or "[]")
        except (httpx.HTTPError, ValueError) as exc:
            current_app.logger.warning("Advisor %s unavailable: %s", label, exc)
            return []
        if not isinstance(data, list):
            current_app.logger.warning("Advisor %s returned non-list payload", label)
            return []
        return [item for item in map(cleaner, data) if item is not None]

    def insights(self, sales: list[Sale], products: list[Product]) -> list[dict]:
        prompt = (
            "Analyze this POS data and return 3-4 key business insights as a JSON array.\n"
            f"Sales: {json.dumps([s.to_dict() for s in sales])}\n"
            f"Inventory: {json.dumps([p.to_dict() for p in products])}\n"
            "Each insight must have: title (string), description (string), "
            "impact ('positive' | 'negative' | 'neutral'), recommendation (string)."
        )
        return self._generate_list(prompt, _clean_insight, "insights")

    def predictions(self, products: list[Product]) -> list[dict]:
        prompt = (
            "Analyze this inventory and predict low-stock issues. Return a JSON array.\n"
            f"Inventory: {json.dumps([p.to_dict() for p in products])}\n"
            "Include fields: productId, productName, currentStock, "
            "predictedDaysLeft (estimate), status ('critical' | 'warning' | 'safe')."
        )
        return self._generate_list(prompt, _clean_prediction, "predictions")

    def chat(self, query: str, sales: list[Sale], products: list[Product]) -> str | None:
        if not self.enabled:
            return None
        last = sales[-1].to_dict()["timestamp"] if sales else "N/A"
        prompt = (
            "Context: You are an AI business advisor for a POS system.\n"
            f"Current Products: {json.dumps([p.to_dict() for p in products])}\n"
            f"Recent Sales Summary: Total {len(sales)} transactions, Last sale: {last}.\n\n"
            f"User Question: {query}"
        )
        try:
            return self._generate(prompt, "text/plain")
        except (httpx.HTTPError, ValueError) as exc:
            current_app.logger.warning("Advisor chat unavailable: %s", exc)
            return None

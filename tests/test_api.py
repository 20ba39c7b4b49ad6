"""Tests for the pricing API endpoints."""

import inspect
from datetime import date
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from src.api.main import app
from src.api.routes import price_periods as price_periods_routes
from src.api.routes.contracts import ContractResponse
from src.engine.index_adjustment import IndexTable
from src.models import EnergyContract


@pytest.fixture
def client():
    return TestClient(app)


def _recompute_body(**overrides):
    body = {
        "start": "2024-01",
        "end": "2024-03",
        "flex_upper_pct": 20,
        "flex_lower_pct": 10,
        "index_multipliers": [{"month": "2024-01", "multiplier": 1.05}],
        "operations": [],
    }
    body.update(overrides)
    return body


class TestRoot:
    """Tests for the root endpoint."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestRecompute:
    """Tests for the stateless recompute endpoint."""

    def test_edits_and_fill(self, client):
        body = _recompute_body(operations=[
            {"op": "edit", "month": "2024-01", "field": "volume_avg_power", "text": "100"},
            {"op": "edit", "month": "2024-01", "field": "base_price", "text": "200"},
            {"op": "fill_year", "year": 2024},
        ])

        response = client.post("/api/price-periods/recompute", json=body)

        assert response.status_code == 200
        data = response.json()
        jan, feb, mar = data["year_tabs"][0]["months"]
        assert jan["volume_energy"] == 74400.0
        assert feb["volume_energy"] == 69600.0
        assert jan["flexibility_max"] == pytest.approx(89280.0)
        assert jan["adjusted_price"] == pytest.approx(210.0)
        assert feb["adjusted_price"] == pytest.approx(200.0)
        assert data["index_state"] == "available"
        assert data["summary"] == {"filled_months": 3, "average_price": 200.0}

        months = data["price_periods"]["periods"][0]["months"]
        assert [m["ym"] for m in months] == ["2024-01", "2024-02", "2024-03"]
        assert all("adjustedPrice" not in m for m in months)

    def test_pending_text_discarded(self, client):
        body = _recompute_body(operations=[
            {"op": "edit", "month": "2024-02", "field": "base_price", "text": "150"},
            {"op": "edit", "month": "2024-02", "field": "base_price", "text": "15,"},
        ])

        data = client.post("/api/price-periods/recompute", json=body).json()

        assert data["year_tabs"][0]["months"][1]["base_price"] == 150.0

    def test_seeded_from_payload(self, client):
        body = _recompute_body(
            price_periods={"periods": [{"id": "keep-me", "start": "2024-01", "end": "2024-03",
                                        "months": [{"ym": "2024-02", "price": 120}]}]},
            index_multipliers=[],
        )

        data = client.post("/api/price-periods/recompute", json=body).json()

        assert data["index_state"] == "unavailable"
        assert data["manual_adjustment_allowed"] is True
        assert data["price_periods"]["periods"][0]["id"] == "keep-me"
        assert data["summary"]["average_price"] == 120.0

    def test_set_flexibility(self, client):
        body = _recompute_body(operations=[
            {"op": "edit", "month": "2024-01", "field": "volume_energy", "text": "1000"},
            {"op": "set_flexibility", "flex_upper_pct": 50},
        ])

        data = client.post("/api/price-periods/recompute", json=body).json()

        jan = data["year_tabs"][0]["months"][0]
        assert jan["flexibility_max"] == 1500.0
        assert jan["flexibility_min"] == 900.0
        assert data["flexibility"] == {"upper_pct": 50.0, "lower_pct": 10.0}

    def test_edit_without_field(self, client):
        body = _recompute_body(operations=[{"op": "edit", "month": "2024-01"}])
        response = client.post("/api/price-periods/recompute", json=body)
        assert response.status_code == 400

    def test_negative_flexibility_rejected(self, client):
        response = client.post("/api/price-periods/recompute", json=_recompute_body(flex_lower_pct=-1))
        assert response.status_code == 422

    def test_fetches_index_when_not_given(self, client):
        body = _recompute_body(operations=[
            {"op": "edit", "month": "2024-03", "field": "base_price", "text": "100"},
        ])
        body.pop("index_multipliers")
        table = IndexTable.from_pairs([("2024-03", 1.1)])

        with patch("src.api.routes.price_periods.get_index_table", return_value=table) as fetch:
            data = client.post("/api/price-periods/recompute", json=body).json()

        fetch.assert_called_once_with("2024-01", "2024-03")
        assert data["year_tabs"][0]["months"][2]["adjusted_price"] == pytest.approx(110.0)

    def test_index_failure_allows_manual_entry(self, client):
        body = _recompute_body(operations=[
            {"op": "edit", "month": "2024-01", "field": "base_price", "text": "100"},
            {"op": "edit", "month": "2024-01", "field": "adjusted_price", "text": "104,5"},
        ])
        body.pop("index_multipliers")

        with patch("src.api.routes.price_periods.get_index_table", side_effect=RuntimeError("down")):
            data = client.post("/api/price-periods/recompute", json=body).json()

        jan = data["year_tabs"][0]["months"][0]
        assert data["index_state"] == "unavailable"
        assert jan["adjusted_price"] == 104.5
        assert jan["adjusted_price_manual"] is True


class TestIndexEndpoint:
    """Tests for the index multiplier endpoint."""

    def test_multipliers(self, client):
        table = IndexTable.from_pairs([("2024-02", 1.02), ("2024-01", 1.01)])
        with patch("src.api.routes.price_periods.get_index_table", return_value=table):
            response = client.get("/api/index/multipliers", params={"start": "2024-01", "end": "2024-02"})

        assert response.status_code == 200
        items = response.json()["multipliers"]
        assert [item["month"] for item in items] == ["2024-01", "2024-02"]
        assert items[0]["multiplier"] == 1.01

    def test_empty(self, client):
        with patch("src.api.routes.price_periods.get_index_table", return_value=IndexTable()):
            response = client.get("/api/index/multipliers")
        assert response.json() == {"multipliers": []}


class TestContracts:
    """Tests for contract endpoints that fail before persisting."""

    def test_inverted_window_rejected(self, client):
        response = client.post("/api/contracts/", json={
            "code": "CT-1",
            "client": "Acme",
            "start_date": "2025-01-01",
            "end_date": "2024-01-01",
        })
        assert response.status_code == 400

    def test_contract_not_found(self, client):
        session = MagicMock()
        session.__enter__.return_value = session
        session.__exit__.return_value = False
        session.query.return_value.filter.return_value.first.return_value = None

        with patch("src.api.routes.contracts.get_session", return_value=session):
            response = client.get("/api/contracts/42")

        assert response.status_code == 404


class TestGridOperations:
    """Tests for default-price and clear-year operations."""

    def test_default_price_then_clear(self, client):
        body = _recompute_body(index_multipliers=[], operations=[
            {"op": "edit", "month": "2024-02", "field": "base_price", "text": "300"},
            {"op": "set_default_price", "year": 2024, "text": "180,5"},
        ])

        data = client.post("/api/price-periods/recompute", json=body).json()

        prices = [m["base_price"] for m in data["year_tabs"][0]["months"]]
        assert prices == [180.5, 300.0, 180.5]
        assert data["year_tabs"][0]["default_price"] == 180.5
        assert data["price_periods"]["periods"][0]["defaultPrice"] == 180.5

        body["operations"].append({"op": "clear_year", "year": 2024})
        data = client.post("/api/price-periods/recompute", json=body).json()

        assert data["price_periods"] == {"periods": []}
        assert data["summary"] == {"filled_months": 0, "average_price": None}

    def test_invalid_default_price(self, client):
        body = _recompute_body(operations=[{"op": "set_default_price", "year": 2024, "text": "abc"}])
        response = client.post("/api/price-periods/recompute", json=body)
        assert response.status_code == 400


class TestBlockingHandlers:
    """Handlers that reach the index service or the database run in the threadpool."""

    @pytest.mark.parametrize("handler", [
        price_periods_routes.get_price_periods,
        price_periods_routes.save_price_periods,
        price_periods_routes.recompute_price_periods,
        price_periods_routes.get_index_multipliers,
    ])
    def test_not_coroutines(self, handler):
        assert not inspect.iscoroutinefunction(handler)


class TestContractResponse:
    """Tests for building responses from ORM objects."""

    def test_from_attributes(self):
        contract = EnergyContract(
            id=7,
            code="CT-7",
            client="Acme",
            start_date=date(2024, 1, 1),
            end_date=date(2024, 12, 31),
            is_active=True,
            flex_upper_pct=10,
            flex_lower_pct=5,
        )

        response = ContractResponse.model_validate(contract)

        assert response.id == 7
        assert response.flex_upper_pct == 10.0
        assert response.supplier is None

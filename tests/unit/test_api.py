from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from salesview.api.app import create_app
from salesview.config import Settings
from salesview.exceptions import StoreUnavailableError
from salesview.service import SalesService
from tests.fakes import FakeSalesStore, make_rows


@pytest.fixture
def api_settings() -> Settings:
    return Settings(anchor_threshold=50, window_threshold=20, default_page_size=10)


@pytest.fixture
def store() -> FakeSalesStore:
    return FakeSalesStore(make_rows(120))


@pytest.fixture
def client(store: FakeSalesStore, api_settings: Settings) -> TestClient:
    service = SalesService(store, api_settings)
    with TestClient(create_app(service=service, settings=api_settings)) as test_client:
        yield test_client


def test_list_defaults_to_first_page_identifier_descending(client: TestClient) -> None:
    response = client.get("/api/sales")

    assert response.status_code == 200
    body = response.json()
    assert [record["id"] for record in body["data"]] == list(range(120, 110, -1))
    assert body["pagination"] == {
        "currentPage": 1,
        "totalPages": 12,
        "totalRecords": 120,
        "pageSize": 10,
        "hasNextPage": True,
        "hasPreviousPage": False,
    }


def test_list_applies_filters_and_search(client: TestClient) -> None:
    response = client.get(
        "/api/sales",
        params={"customerRegion": "North,South", "gender": "Male", "search": "acme", "limit": "5"},
    )

    body = response.json()
    assert response.status_code == 200
    assert len(body["data"]) == 5
    for record in body["data"]:
        assert record["customerRegion"] in {"North", "South"}
        assert record["gender"] == "Male"


def test_malformed_numbers_are_coerced(client: TestClient) -> None:
    response = client.get("/api/sales", params={"page": "abc", "limit": "zero", "minAge": "x"})

    assert response.status_code == 200
    assert response.json()["pagination"]["currentPage"] == 1
    assert response.json()["pagination"]["pageSize"] == 10


def test_page_past_the_end_is_clamped(client: TestClient) -> None:
    response = client.get("/api/sales", params={"page": "999999"})

    body = response.json()
    assert body["data"] == []
    assert body["pagination"]["currentPage"] == 12


def test_optimized_route_defaults_to_ascending(client: TestClient, store: FakeSalesStore) -> None:
    response = client.get("/api/sales/optimized", params={"page": "4"})

    assert [record["id"] for record in response.json()["data"]] == list(range(31, 41))
    assert store.calls["window"] == 1


def test_range_route_returns_cursor(client: TestClient) -> None:
    first = client.get("/api/sales/range", params={"limit": "3"}).json()
    following = client.get(
        "/api/sales/range", params={"limit": "3", "lastId": str(first["lastId"])}
    ).json()

    assert [record["id"] for record in first["data"]] == [120, 119, 118]
    assert first["totalRecords"] == 120
    assert [record["id"] for record in following["data"]] == [117, 116, 115]


def test_filters_route_serializes_camel_case(client: TestClient) -> None:
    body = client.get("/api/sales/filters").json()

    assert body["customerRegions"] == ["East", "North", "South", "West"]
    assert body["ageRange"] == {"min": 18, "max": 67}
    assert set(body) == {
        "customerRegions",
        "genders",
        "productCategories",
        "paymentMethods",
        "tags",
        "ageRange",
    }


def test_plumbing_routes(client: TestClient) -> None:
    assert client.get("/api/sales/test").json() == {"message": "Sales API is working!"}
    health = client.get("/health").json()
    assert health["status"] == "OK"
    assert "timestamp" in health
    assert client.get("/").json()["endpoints"]["filters"] == "/api/sales/filters"


def test_unknown_route_returns_error_body(client: TestClient) -> None:
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.json() == {"error": "Route not found"}


def test_unavailable_store_maps_to_503(store: FakeSalesStore, api_settings: Settings) -> None:
    store.failures["estimated_count"] = StoreUnavailableError("connection refused")
    client = TestClient(create_app(service=SalesService(store, api_settings), settings=api_settings))

    response = client.get("/api/sales")

    assert response.status_code == 503
    assert response.json() == {"error": "Service unavailable"}


def test_missing_service_maps_to_503(api_settings: Settings) -> None:
    # No lifespan run: the app has no service and no database.
    client = TestClient(create_app(settings=api_settings))

    response = client.get("/api/sales/filters")

    assert response.status_code == 503
    assert response.json() == {"error": "Service unavailable"}


def test_unexpected_error_maps_to_generic_500(store: FakeSalesStore, api_settings: Settings) -> None:
    store.failures["estimated_count"] = RuntimeError("boom")
    client = TestClient(
        create_app(service=SalesService(store, api_settings), settings=api_settings),
        raise_server_exceptions=False,
    )

    response = client.get("/api/sales")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_filters_route_degrades_on_unexpected_error(store: FakeSalesStore, api_settings: Settings) -> None:
    store.failures["sample"] = RuntimeError("driver bug")
    client = TestClient(create_app(service=SalesService(store, api_settings), settings=api_settings))

    response = client.get("/api/sales/filters")

    assert response.status_code == 200
    assert response.json()["ageRange"] == {"min": 0, "max": 100}
    assert response.json()["customerRegions"] == []

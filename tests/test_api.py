"""
End-to-end tests for the booking HTTP API with in-memory adapters.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from medrent.application.use_cases.booking_session import BookingSessionUseCase
from medrent.infrastructure.catalog.category_store import CategoryCatalogStore
from medrent.infrastructure.inventory.memory_inventory import build_demo_inventory
from medrent.infrastructure.store.memory_store import MemoryBookingRepository, MemoryWorkflowStore
from medrent.main import app
from medrent.wiring.dependencies import get_booking_session_use_case, get_category_catalog

CUSTOMER = {
    "name": "Naledi Dube",
    "phone": "072 123 4567",
    "email": "naledi@example.co.za",
    "address": "8 Station Road, Hilton",
}


@pytest.fixture
def client():
    catalog = CategoryCatalogStore()
    uc = BookingSessionUseCase(
        store=MemoryWorkflowStore(),
        availability=build_demo_inventory({"hilton": 1, "johannesburg": 1}),
        catalog=catalog,
        repository=MemoryBookingRepository(),
    )
    app.dependency_overrides[get_booking_session_use_case] = lambda: uc
    app.dependency_overrides[get_category_catalog] = lambda: catalog
    yield TestClient(app)
    app.dependency_overrides.clear()


def _start(client: TestClient) -> str:
    response = client.post("/api/v1/bookings")
    assert response.status_code == 201
    return response.json()["session_id"]


def _quote(client: TestClient, session_id: str, branch: str = "hilton") -> dict:
    base = f"/api/v1/bookings/{session_id}"
    assert client.post(f"{base}/branch", json={"branch_id": branch}).status_code == 200
    assert client.post(f"{base}/equipment", json={"category_id": "wheelchairs"}).status_code == 200
    response = client.post(f"{base}/dates", json={"start_date": "2025-05-01", "end_date": "2025-05-10"})
    assert response.status_code == 200
    response = client.post(f"{base}/availability")
    assert response.status_code == 200
    return response.json()


def test_health():
    assert TestClient(app).get("/health").json() == {"status": "ok"}


def test_catalog_lists_branches_and_categories(client):
    branches = client.get("/api/v1/branches").json()
    categories = client.get("/api/v1/categories").json()

    assert [b["branch_id"] for b in branches] == ["hilton", "johannesburg"]
    assert len(categories) == 13


def test_pricing_quote(client):
    response = client.get(
        "/api/v1/pricing/quote",
        params={"category_id": "wheelchairs", "start_date": "2025-05-01", "end_date": "2025-06-04"},
    )

    body = response.json()
    assert response.status_code == 200
    assert body["duration"] == 35
    assert body["total"] == 1500
    assert body["breakdown"] == "1 month @ R1200/month + 5 days @ R60/day"
    assert body["recommendation"].startswith("Monthly")


def test_pricing_quote_errors(client):
    inverted = client.get(
        "/api/v1/pricing/quote",
        params={"category_id": "wheelchairs", "start_date": "2025-05-02", "end_date": "2025-05-01"},
    )
    unknown = client.get(
        "/api/v1/pricing/quote",
        params={"category_id": "jetpacks", "start_date": "2025-05-01", "end_date": "2025-05-02"},
    )

    assert inverted.status_code == 422
    assert unknown.status_code == 404


def test_booking_happy_path(client):
    session_id = _start(client)
    base = f"/api/v1/bookings/{session_id}"

    quote = _quote(client, session_id)
    assert quote["stage"] == "quote"
    assert quote["pricing"]["breakdown"] == "1 week @ R350/week + 3 days @ R60/day"
    assert quote["total_cost"] == 530
    assert quote["deposit_amount"] == 159
    assert quote["balance_due"] == 371

    assert client.post(f"{base}/quote/accept").json()["stage"] == "customer_info"
    submitted = client.post(f"{base}/customer", json=CUSTOMER).json()
    assert submitted["stage"] == "quote_submitted"
    assert submitted["quote_id"].startswith("Q")

    assert client.post(f"{base}/submit").json()["stage"] == "payment_pending"
    confirmed = client.post(f"{base}/payment").json()
    assert confirmed["stage"] == "confirmed"
    assert confirmed["booking_id"].startswith("B")
    assert confirmed["booking_reference"] == "MR-00001"

    assert client.post(f"{base}/delivery/complete").json()["stage"] == "delivery_complete"
    offer = client.post(f"{base}/extension/offer").json()
    assert [o["days"] for o in offer["extension_options"]] == [7, 14, 30]

    extended = client.post(f"{base}/extension/accept", json={"extra_days": 7}).json()
    assert extended["end_date"] == "2025-05-17"
    assert extended["extension_charges"] == 420
    assert extended["return_status"] == "extended"

    assert client.post(f"{base}/return/remind").json()["stage"] == "return_reminder"
    assert client.post(f"{base}/return/confirm").json()["stage"] == "return_complete"
    assert client.get(base).json()["return_status"] == "returned"


def test_validation_error_is_422(client):
    session_id = _start(client)

    response = client.post(f"/api/v1/bookings/{session_id}/branch", json={"branch_id": ""})

    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "branch"
    assert client.get(f"/api/v1/bookings/{session_id}").json()["stage"] == "branch_selection"


def test_delivery_before_payment_is_409(client):
    session_id = _start(client)
    base = f"/api/v1/bookings/{session_id}"
    _quote(client, session_id)
    client.post(f"{base}/quote/accept")
    client.post(f"{base}/customer", json=CUSTOMER)
    client.post(f"{base}/submit")

    response = client.post(f"{base}/delivery/dispatch")

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "invalid_transition"
    assert client.get(base).json()["stage"] == "payment_pending"


def test_exhausted_stock_is_409_and_recoverable(client):
    first, second, third = _start(client), _start(client), _start(client)
    for session_id in (first, second):
        base = f"/api/v1/bookings/{session_id}"
        _quote(client, session_id)
        client.post(f"{base}/quote/accept")
        client.post(f"{base}/customer", json=CUSTOMER)
        assert client.post(f"{base}/submit").json()["stage"] == "payment_pending"

    base = f"/api/v1/bookings/{third}"
    client.post(f"{base}/branch", json={"branch_id": "hilton"})
    client.post(f"{base}/equipment", json={"category_id": "wheelchairs"})
    client.post(f"{base}/dates", json={"start_date": "2025-05-01", "end_date": "2025-05-10"})
    response = client.post(f"{base}/availability")

    assert response.status_code == 409
    assert response.json()["detail"]["branches_checked"] == ["hilton", "johannesburg"]
    assert client.get(base).json()["stage"] == "no_availability"

    back = client.post(f"{base}/back", json={"stage": "date_selection"})
    assert back.json()["stage"] == "date_selection"


def test_cross_branch_quote_when_local_stock_taken(client):
    first = _start(client)
    base = f"/api/v1/bookings/{first}"
    _quote(client, first)
    client.post(f"{base}/quote/accept")
    client.post(f"{base}/customer", json=CUSTOMER)
    client.post(f"{base}/submit")

    quote = _quote(client, _start(client))

    assert quote["availability"]["cross_branch_booking"] is True
    assert quote["availability"]["fulfilling_branch_id"] == "johannesburg"
    assert quote["availability"]["delivery_fee"] == 450
    assert quote["total_cost"] == 530 + 450


def test_cancel_and_unknown_session(client):
    session_id = _start(client)

    assert client.post(f"/api/v1/bookings/{session_id}/cancel").json()["stage"] == "cancelled"
    assert client.get("/api/v1/bookings/does-not-exist").status_code == 404

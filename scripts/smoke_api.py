#!/usr/bin/env python3
"""
Walk one booking through a running API server.

Usage:
  uvicorn medrent.main:app --port 8001
  python3 scripts/smoke_api.py [branch] [category]
"""

from __future__ import annotations

import sys
from datetime import date, timedelta
from typing import Any

import httpx

BASE_URL = "http://127.0.0.1:8001/api/v1"


def _step(client: httpx.Client, label: str, method: str, path: str, payload: dict[str, Any] | None = None) -> dict:
    print("=" * 60)
    print(f"{label}: {method} {path}")
    response = client.request(method, path, json=payload)
    body = response.json()
    print(f"Status: {response.status_code}")
    if response.status_code >= 400:
        print(f"Error: {body.get('detail')}")
        sys.exit(1)
    if "stage" in body:
        print(f"Stage: {body['stage']}")
    return body


def main() -> None:
    branch = sys.argv[1] if len(sys.argv) > 1 else "hilton"
    category = sys.argv[2] if len(sys.argv) > 2 else "wheelchairs"
    start = date.today() + timedelta(days=3)
    end = start + timedelta(days=9)

    with httpx.Client(base_url=BASE_URL, timeout=10.0) as client:
        session = _step(client, "Start", "POST", "/bookings")
        base = f"/bookings/{session['session_id']}"

        _step(client, "Branch", "POST", f"{base}/branch", {"branch_id": branch})
        _step(client, "Equipment", "POST", f"{base}/equipment", {"category_id": category})
        _step(
            client,
            "Dates",
            "POST",
            f"{base}/dates",
            {"start_date": start.isoformat(), "end_date": end.isoformat()},
        )
        quote = _step(client, "Availability", "POST", f"{base}/availability")
        print(f"Pricing: {quote['pricing']['breakdown']} = R{quote['pricing']['total']}")
        if quote["availability"]["cross_branch_booking"]:
            print(
                f"Fulfilled from {quote['availability']['fulfilling_branch_id']}, "
                f"delivery R{quote['availability']['delivery_fee']}"
            )
        print(f"Total: R{quote['total_cost']}  Deposit: R{quote['deposit_amount']}")

        _step(client, "Accept quote", "POST", f"{base}/quote/accept")
        _step(
            client,
            "Customer",
            "POST",
            f"{base}/customer",
            {
                "name": "Smoke Test",
                "phone": "000 000 0000",
                "email": "smoke@example.com",
                "address": "1 Test Street",
            },
        )
        _step(client, "Submit", "POST", f"{base}/submit")
        confirmed = _step(client, "Payment", "POST", f"{base}/payment")
        print(f"Booking: {confirmed['booking_id']} ({confirmed['booking_reference']})")

        _step(client, "Delivered", "POST", f"{base}/delivery/complete")
        _step(client, "Return reminder", "POST", f"{base}/return/remind")
        _step(client, "Returned", "POST", f"{base}/return/confirm")

    print("=" * 60)
    print("✅ Booking walkthrough completed")


if __name__ == "__main__":
    main()

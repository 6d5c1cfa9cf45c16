from __future__ import annotations

import pytest


@pytest.fixture
def ids(seeded):
    return {
        "admin": seeded["users"]["admin"],
        "sam": seeded["users"]["sam"],
        "sue": seeded["users"]["sue"],
        "bob": seeded["users"]["bob"],
        "phone_stock": seeded["inventory"]["PHN-001"],
        "small_stock": seeded["inventory"]["TSH-001-S"],
        "large_stock": seeded["inventory"]["TSH-001-L"],
    }


def test_inventory_requires_login(client):
    assert client.get("/inventory").status_code == 401


def test_buyer_cannot_see_inventory(client, ids, auth_headers):
    assert client.get("/inventory", headers=auth_headers(ids["bob"])).status_code == 403


def test_list_inventory(client, ids, auth_headers):
    body = client.get("/inventory", headers=auth_headers(ids["sam"])).json()
    assert body["count"] == 3
    # Default sort: quantity ascending.
    assert [row["sku"] for row in body["data"]] == ["TSH-001-L", "TSH-001-S", "PHN-001"]

    low = client.get("/inventory", params={"low_stock": True}, headers=auth_headers(ids["sam"])).json()
    assert [row["sku"] for row in low["data"]] == ["TSH-001-S"]


def test_low_and_out_of_stock(client, ids, auth_headers):
    headers = auth_headers(ids["admin"])
    low = client.get("/inventory/low-stock", headers=headers).json()
    assert [row["sku"] for row in low["data"]] == ["TSH-001-S"]

    out = client.get("/inventory/out-of-stock", headers=headers).json()
    assert [row["sku"] for row in out["data"]] == ["TSH-001-L"]


def test_get_inventory(client, ids, auth_headers):
    headers = auth_headers(ids["sue"])
    assert client.get(f"/inventory/{ids['phone_stock']}", headers=headers).json()["quantity"] == 25
    assert client.get("/inventory/99999", headers=headers).status_code == 404


def test_update_inventory_checks_ownership(client, ids, auth_headers):
    url = f"/inventory/{ids['phone_stock']}"
    assert client.put(url, json={"quantity": 1}, headers=auth_headers(ids["sue"])).status_code == 403
    assert client.put(url, json={"quantity": 1}, headers=auth_headers(ids["bob"])).status_code == 403

    response = client.put(url, json={"quantity": 30, "location": "A-1"}, headers=auth_headers(ids["sam"]))
    assert response.status_code == 200
    body = response.json()
    assert body["quantity"] == 30
    assert body["location"] == "A-1"
    assert body["last_restock_date"] is not None


def test_variant_stock_owner_is_product_seller(client, ids, auth_headers):
    url = f"/inventory/{ids['small_stock']}"
    assert client.put(url, json={"quantity": 9}, headers=auth_headers(ids["sam"])).status_code == 403
    assert client.put(url, json={"quantity": 9}, headers=auth_headers(ids["sue"])).status_code == 200


def test_update_missing_inventory_is_404(client, ids, auth_headers):
    response = client.put("/inventory/99999", json={"quantity": 1}, headers=auth_headers(ids["sam"]))
    assert response.status_code == 404
    assert response.json() == {"detail": "Inventory record not found"}


def test_negative_quantity_is_rejected(client, ids, auth_headers):
    response = client.put(f"/inventory/{ids['phone_stock']}", json={"quantity": -1}, headers=auth_headers(ids["sam"]))
    assert response.status_code == 422


def test_batch_update_reports_per_row(client, ids, auth_headers):
    payload = {
        "updates": [
            {"id": ids["small_stock"], "quantity": 10, "notes": "restock"},
            {"id": ids["phone_stock"], "quantity": 1},
            {"id": 99999, "quantity": 5},
        ]
    }
    response = client.patch("/inventory/quantities", json=payload, headers=auth_headers(ids["sue"]))
    assert response.status_code == 200

    results = response.json()
    assert results[0]["success"] is True
    assert results[0]["old_quantity"] == 3
    assert results[0]["new_quantity"] == 10
    assert results[0]["notes"] == "restock"
    assert results[1]["success"] is False
    assert results[2] == {
        "id": 99999,
        "success": False,
        "message": "Inventory record not found",
        "old_quantity": None,
        "new_quantity": None,
        "notes": None,
    }

    headers = auth_headers(ids["admin"])
    assert client.get(f"/inventory/{ids['small_stock']}", headers=headers).json()["quantity"] == 10
    assert client.get(f"/inventory/{ids['phone_stock']}", headers=headers).json()["quantity"] == 25


def test_batch_update_requires_permission(client, ids, auth_headers):
    payload = {"updates": [{"id": ids["small_stock"], "quantity": 10}]}
    assert client.patch("/inventory/quantities", json=payload, headers=auth_headers(ids["bob"])).status_code == 403
    assert client.patch("/inventory/quantities", json={"updates": []}, headers=auth_headers(ids["sue"])).status_code == 422

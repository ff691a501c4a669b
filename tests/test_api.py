import pytest

from storefront.core.exceptions import StorageUnavailableError
from storefront.main import app
from storefront.services.storage import MemoryOrderStorage, get_order_storage


async def place(client, plate_type="full", quantity=3) -> dict:
    response = await client.post("/api/orders", json={"plate_type": plate_type, "quantity": quantity})
    assert response.status_code == 201
    return response.json()


# =============================================================================
# PUBLIC
# =============================================================================

async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "operational"


async def test_menu(client):
    data = (await client.get("/api/menu")).json()

    assert data["min_plates_per_order"] == 2
    assert data["minimum_order_message"] == "Minimum order for delivery: 2 plates"
    assert [item["price"] for item in data["items"]] == [50, 80]


async def test_place_order(client):
    data = await place(client)

    assert data["success"] is True
    assert data["order"]["status"] == "pending"
    assert data["order"]["total_amount"] == 240
    assert data["checkout"]["grand_total"] == 260
    assert data["checkout"]["whatsapp_order_link"].startswith("https://wa.me/")


async def test_below_minimum_is_rejected_with_message(client, storage):
    response = await client.post("/api/orders", json={"plate_type": "half", "quantity": 1})

    assert response.status_code == 400
    assert response.json()["detail"] == (
        "Please add 1 more plate to meet the minimum order requirement."
    )
    assert await storage.get_all_orders() == []


@pytest.mark.parametrize("quantity", [0, -3])
async def test_zero_or_negative_quantity_gets_minimum_order_message(client, storage, quantity):
    response = await client.post("/api/orders", json={"plate_type": "half", "quantity": quantity})

    assert response.status_code == 400
    assert response.json()["detail"] == (
        f"Please add {2 - quantity} more plates to meet the minimum order requirement."
    )
    assert await storage.get_all_orders() == []


async def test_large_order_is_accepted(client):
    data = await place(client, plate_type="full", quantity=100)

    assert data["order"]["quantity"] == 100
    assert data["order"]["total_amount"] == 8000
    assert data["checkout"]["grand_total"] == 8020


async def test_unknown_plate_type_is_rejected(client):
    response = await client.post("/api/orders", json={"plate_type": "family", "quantity": 2})

    assert response.status_code == 422


async def test_checkout_for_existing_order(client):
    order_id = (await place(client))["order"]["id"]

    response = await client.get(f"/api/orders/{order_id}/checkout")

    assert response.status_code == 200
    assert response.json()["qr_payment_link"].startswith("upi://pay?")


async def test_unknown_order_is_404(client):
    for path in ("/api/orders/9999", "/api/orders/9999/checkout"):
        response = await client.get(path)
        assert response.status_code == 404
        assert "No such order" in response.json()["detail"]


async def test_payment_confirmation_flow(client):
    order_id = (await place(client))["order"]["id"]

    assert (await client.get(f"/api/orders/{order_id}/payment-confirmation")).json() is None

    response = await client.post(
        f"/api/orders/{order_id}/payment-confirmation",
        json={"utr": "412345678901", "paid_via": "PhonePe"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["order"]["status"] == "pending"
    assert data["payment_confirmation_link"].startswith("https://wa.me/")

    confirmation = (await client.get(f"/api/orders/{order_id}/payment-confirmation")).json()
    assert confirmation["utr"] == "412345678901"
    assert confirmation["paid_via"] == "PhonePe"


async def test_empty_utr_is_rejected(client):
    order_id = (await place(client))["order"]["id"]

    response = await client.post(
        f"/api/orders/{order_id}/payment-confirmation",
        json={"utr": "   "},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


async def test_payment_for_unknown_order_is_404(client):
    response = await client.post("/api/orders/9999/payment-confirmation", json={"utr": "1"})

    assert response.status_code == 404


async def test_ads_disabled_by_default(client):
    data = (await client.get("/api/ads")).json()

    assert data["enabled"] is False
    assert data["provider_head_snippet"] == ""


# =============================================================================
# ADMIN
# =============================================================================

async def test_admin_requires_fragment_token(client, admin_headers):
    assert (await client.get("/api/admin/orders")).status_code == 403

    wrong = {"X-Admin-Fragment": "#caffeineAdminToken=0000"}
    assert (await client.get("/api/admin/orders", headers=wrong)).status_code == 403

    assert (await client.get("/api/admin/orders", headers=admin_headers)).status_code == 200


async def test_admin_status_update_and_timeline(client, admin_headers):
    order_id = (await place(client))["order"]["id"]

    for status in ("accepted", "preparing", "preparing"):
        response = await client.patch(
            f"/api/admin/orders/{order_id}/status",
            json={"status": status},
            headers=admin_headers,
        )
        assert response.status_code == 200

    timeline = (
        await client.get(f"/api/admin/orders/{order_id}/timeline", headers=admin_headers)
    ).json()["events"]

    assert [e["status"] for e in timeline] == ["pending", "accepted", "preparing", "preparing"]
    assert timeline[0]["changed_by"] == "customer"
    assert timeline[-1]["changed_by"] == "Admin"


async def test_admin_status_uses_wire_names(client, admin_headers):
    order_id = (await place(client))["order"]["id"]

    response = await client.patch(
        f"/api/admin/orders/{order_id}/status",
        json={"status": "outForDelivery", "changed_by": "Rider"},
        headers=admin_headers,
    )

    assert response.json()["status"] == "outForDelivery"
    assert response.json()["status_events"][-1]["changed_by"] == "Rider"


async def test_admin_status_unknown_order(client, admin_headers):
    response = await client.patch(
        "/api/admin/orders/9999/status",
        json={"status": "accepted"},
        headers=admin_headers,
    )

    assert response.status_code == 404


async def test_admin_list_filters_and_summary(client, admin_headers):
    first = (await place(client, "half", 2))["order"]["id"]
    second = (await place(client, "full", 3))["order"]["id"]
    await client.post(f"/api/orders/{second}/payment-confirmation", json={"utr": "UTR2"})
    await client.patch(
        f"/api/admin/orders/{first}/status",
        json={"status": "delivered"},
        headers=admin_headers,
    )

    data = (await client.get("/api/admin/orders", headers=admin_headers)).json()
    assert [o["id"] for o in data["orders"]] == [second, first]
    assert data["summary"]["paid_orders"] == 1
    assert data["summary"]["total_revenue"] == 240

    paid = (
        await client.get("/api/admin/orders", params={"payment": "paid"}, headers=admin_headers)
    ).json()
    assert [o["id"] for o in paid["orders"]] == [second]

    delivered = (
        await client.get("/api/admin/orders", params={"status": "delivered"}, headers=admin_headers)
    ).json()
    assert [o["id"] for o in delivered["orders"]] == [first]


async def test_admin_list_rejects_unknown_status(client, admin_headers):
    response = await client.get(
        "/api/admin/orders",
        params={"status": "lost"},
        headers=admin_headers,
    )

    assert response.status_code == 400


class UnavailableStorage(MemoryOrderStorage):
    async def get_all_orders(self):
        raise StorageUnavailableError("database is down")


async def test_admin_list_reports_unavailable_store(client, admin_headers):
    app.dependency_overrides[get_order_storage] = lambda: UnavailableStorage()

    response = await client.get("/api/admin/orders", headers=admin_headers)

    assert response.status_code == 503
    assert response.json()["error"] == "orders_unavailable"


async def test_admin_ads_settings(client, admin_headers):
    invalid = await client.put(
        "/api/admin/ads-settings",
        json={"enabled": True, "adsense_client_id": "pub-1"},
        headers=admin_headers,
    )
    assert invalid.status_code == 400
    assert invalid.json()["valid"] is False

    saved = await client.put(
        "/api/admin/ads-settings",
        json={
            "enabled": True,
            "adsense_client_id": "ca-pub-1234567890123456",
            "top_banner_slot_id": "111",
        },
        headers=admin_headers,
    )
    assert saved.status_code == 200
    assert (await client.get("/api/ads")).json()["enabled"] is True

    cleared = await client.delete("/api/admin/ads-settings", headers=admin_headers)
    assert cleared.json()["enabled"] is False
    assert (await client.get("/api/ads")).json()["enabled"] is False


async def test_admin_build_status(client, admin_headers):
    assert (await client.get("/api/admin/build-status", headers=admin_headers)).json() is None

    payload = {
        "build_succeeded": True,
        "build_output": "ok",
        "app_installation_succeeded": True,
        "deploy_succeeded": False,
        "deploy_output": "timeout",
    }
    response = await client.put("/api/admin/build-status", json=payload, headers=admin_headers)
    assert response.status_code == 200

    stored = (await client.get("/api/admin/build-status", headers=admin_headers)).json()
    assert stored["status"]["deploy_succeeded"] is False
    assert stored["status"]["deploy_output"] == "timeout"

"""HTTP surface: auth, tenant errors and the quotation -> invoice -> payment flow."""
import re
import uuid

from conftest import TEST_PASSWORD, auth_headers

QUOTATION = {
    "customer_name": "Walk-in Customer",
    "customer_state": "Maharashtra",
    "installation_charge": "100",
    "transport_charge": "50",
    "discount_value": "50",
    "gst_percentage": "18",
    "items": [
        {
            "glass_type": "Clear Float",
            "thickness": "5mm",
            "height": "10",
            "width": "10",
            "quantity": 1,
            "rate_per_sqft": "10",
        }
    ],
}


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_login(client, api_user_a):
    response = await client.post(
        "/api/v1/auth/login", json={"username": "api_owner_a", "password": TEST_PASSWORD}
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = await client.get("/api/v1/quotations", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["total"] == 0


async def test_login_wrong_password(client, api_user_a):
    response = await client.post(
        "/api/v1/auth/login", json={"username": "api_owner_a", "password": "nope"}
    )
    assert response.status_code == 401


async def test_tenant_errors(client, api_user_a):
    response = await client.get("/api/v1/quotations")
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHENTICATED"

    response = await client.get("/api/v1/quotations", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401

    response = await client.get("/api/v1/quotations", headers=auth_headers("nobody"))
    assert response.status_code == 401
    assert response.json()["code"] == "PRINCIPAL_NOT_FOUND"


async def test_full_billing_flow(client, api_user_a):
    headers = auth_headers("api_owner_a")

    response = await client.post("/api/v1/quotations", json=QUOTATION, headers=headers)
    assert response.status_code == 201, response.text
    quotation = response.json()
    assert re.match(r"^QTN-\d{4}-\d{2}-\d{4}$", quotation["quotation_number"])
    assert quotation["status"] == "DRAFT"
    assert float(quotation["grand_total"]) == 1298.0
    assert float(quotation["cgst"]) == float(quotation["sgst"]) == 99.0

    # Not confirmed yet
    response = await client.post(
        "/api/v1/invoices/from-quotation", json={"quotation_id": quotation["id"]}, headers=headers
    )
    assert response.status_code == 409
    assert response.json()["code"] == "QUOTATION_NOT_CONFIRMED"

    response = await client.post(f"/api/v1/quotations/{quotation['id']}/confirm", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "CONFIRMED"

    response = await client.post(f"/api/v1/quotations/{quotation['id']}/confirm", headers=headers)
    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_STATE"

    response = await client.delete(f"/api/v1/quotations/{quotation['id']}", headers=headers)
    assert response.status_code == 409

    response = await client.post(
        "/api/v1/invoices/from-quotation", json={"quotation_id": quotation["id"]}, headers=headers
    )
    assert response.status_code == 201, response.text
    invoice = response.json()
    assert re.match(r"^INV-\d{4}-\d{2}-\d{4}$", invoice["invoice_number"])
    assert invoice["payment_status"] == "DUE"
    assert len(invoice["items"]) == 1

    response = await client.post(
        f"/api/v1/invoices/{invoice['id']}/payments",
        json={"payment_mode": "UPI", "amount": "500"},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["payment_status"] == "PARTIAL"
    assert float(body["paid_amount"]) == 500.0
    assert float(body["due_amount"]) == 798.0

    response = await client.post(
        f"/api/v1/invoices/{invoice['id']}/payments",
        json={"payment_mode": "CASH", "amount": "798"},
        headers=headers,
    )
    body = response.json()
    assert body["payment_status"] == "PAID"
    assert float(body["due_amount"]) == 0.0
    assert len(body["payments"]) == 2

    response = await client.get(f"/api/v1/invoices/{invoice['id']}/payments", headers=headers)
    assert [p["payment_mode"] for p in response.json()] == ["UPI", "CASH"]

    response = await client.get("/api/v1/invoices/payment-status/PAID", headers=headers)
    assert response.json()["total"] == 1

    response = await client.get(f"/api/v1/invoices/{invoice['id']}/download", headers=headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert invoice["invoice_number"] in response.text
    assert "1,298.00" in response.text


async def test_invalid_payment_amount(client, api_user_a):
    headers = auth_headers("api_owner_a")
    quotation = (await client.post("/api/v1/quotations", json=QUOTATION, headers=headers)).json()
    await client.post(f"/api/v1/quotations/{quotation['id']}/confirm", headers=headers)
    invoice = (await client.post(
        "/api/v1/invoices/from-quotation", json={"quotation_id": quotation["id"]}, headers=headers
    )).json()

    response = await client.post(
        f"/api/v1/invoices/{invoice['id']}/payments",
        json={"payment_mode": "CASH", "amount": "0"},
        headers=headers,
    )
    assert response.status_code == 422
    assert response.json()["code"] == "INVALID_AMOUNT"


async def test_cross_tenant_invoice_is_forbidden(client, api_user_a, api_user_b):
    owner = auth_headers("api_owner_a")
    intruder = auth_headers("api_owner_b")

    quotation = (await client.post("/api/v1/quotations", json=QUOTATION, headers=owner)).json()
    await client.post(f"/api/v1/quotations/{quotation['id']}/confirm", headers=owner)
    invoice = (await client.post(
        "/api/v1/invoices/from-quotation",
        json={"quotation_id": quotation["id"], "invoice_type": "ADVANCE"},
        headers=owner,
    )).json()
    assert invoice["invoice_number"].startswith("ADV-")

    response = await client.get(f"/api/v1/invoices/{invoice['id']}", headers=intruder)
    assert response.status_code == 403
    body = response.json()
    assert body["code"] == "CROSS_TENANT_ACCESS"
    assert "invoice_number" not in body

    response = await client.get(f"/api/v1/quotations/{quotation['id']}", headers=intruder)
    assert response.status_code == 403

    response = await client.get("/api/v1/invoices", headers=intruder)
    assert response.json()["total"] == 0


async def test_reject_and_delete(client, api_user_a):
    headers = auth_headers("api_owner_a")

    rejected = (await client.post("/api/v1/quotations", json=QUOTATION, headers=headers)).json()
    response = await client.post(
        f"/api/v1/quotations/{rejected['id']}/reject", json={"reason": "Budget cut"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["rejection_reason"] == "Budget cut"

    draft = (await client.post("/api/v1/quotations", json=QUOTATION, headers=headers)).json()
    response = await client.delete(f"/api/v1/quotations/{draft['id']}", headers=headers)
    assert response.status_code == 204

    response = await client.get(f"/api/v1/quotations/{draft['id']}", headers=headers)
    assert response.status_code == 404

    response = await client.get("/api/v1/quotations/status/REJECTED", headers=headers)
    assert response.json()["total"] == 1

    response = await client.get(f"/api/v1/quotations/{rejected['id']}/download", headers=headers)
    assert response.status_code == 200
    assert rejected["quotation_number"] in response.text


async def test_customers(client, api_user_a, api_user_b):
    headers = auth_headers("api_owner_a")

    response = await client.post(
        "/api/v1/customers",
        json={"name": "Ramesh Traders", "mobile": "9800000001", "state": "Goa"},
        headers=headers,
    )
    assert response.status_code == 201
    customer = response.json()

    response = await client.put(
        f"/api/v1/customers/{customer['id']}", json={"city": "Panaji"}, headers=headers
    )
    assert response.json()["city"] == "Panaji"
    assert response.json()["name"] == "Ramesh Traders"

    response = await client.get("/api/v1/customers", params={"search": "9800"}, headers=headers)
    assert response.json()["total"] == 1

    # Quotation for an out-of-state customer is IGST
    payload = dict(QUOTATION, customer_id=customer["id"], customer_name=None, customer_state=None)
    quotation = (await client.post("/api/v1/quotations", json=payload, headers=headers)).json()
    assert quotation["customer_name"] == "Ramesh Traders"
    assert quotation["is_interstate"] is True
    assert float(quotation["igst"]) == 198.0

    response = await client.get(f"/api/v1/customers/{customer['id']}", headers=auth_headers("api_owner_b"))
    assert response.status_code == 403

    response = await client.get(f"/api/v1/customers/{uuid.uuid4()}", headers=headers)
    assert response.status_code == 404

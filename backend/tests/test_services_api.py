import random

import pytest

from app.api.deps import get_payment_processor
from app.core.errors import PaymentDeclined
from app.schemas.services import PaymentRequest
from app.services.payments import MockPaymentProcessor
from conftest import VALID_VIN, car_payload, guest

PAYMENT = {"amount": 29.99, "paymentMethod": "card", "serviceType": "carfax"}


def test_carfax_price(client):
    response = client.get("/api/carfax/price")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["regularPrice"] == 39.99
    assert data["discountedPrice"] == 29.99
    assert data["discount"] == 25
    assert data["currency"] == "USD"
    assert "validUntil" in data


def test_carfax_request_without_evaluation(client):
    response = client.post("/api/carfax/request", json={"vin": VALID_VIN.lower()})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["vin"] == VALID_VIN
    assert data["cost"] == 29.99
    assert data["downloadUrl"].endswith(data["reportId"])
    assert data["evaluationId"] is None
    summary = data["report"]["summary"]
    assert summary["overallRating"] == "Good"
    assert "titleInfo" in data["report"]["data"]


def test_carfax_request_requires_valid_vin(client):
    assert client.post("/api/carfax/request", json={}).status_code == 400
    assert client.post("/api/carfax/request", json={"vin": "12345"}).status_code == 400


def test_carfax_report_attached_to_owned_evaluation(client):
    created = client.post("/api/evaluations", json=car_payload())
    session_id = created.json()["data"]["sessionId"]
    evaluation_id = created.json()["data"]["id"]
    headers = guest(session_id)

    response = client.post(
        "/api/carfax/request", json={"vin": VALID_VIN, "evaluationId": evaluation_id}, headers=headers
    )
    assert response.status_code == 200
    report_id = response.json()["data"]["reportId"]

    record = client.get(f"/api/evaluations/{evaluation_id}", headers=headers).json()["data"]
    assert record["carfax"]["requested"] is True
    assert record["carfax"]["reportId"] == report_id
    assert "summary" in record["carfax"]["data"]
    assert record["status"] == "draft"


def test_carfax_attach_to_foreign_evaluation(client, user_headers, other_user_headers):
    evaluation_id = client.post(
        "/api/evaluations", json=car_payload(), headers=user_headers
    ).json()["data"]["id"]

    response = client.post(
        "/api/carfax/request", json={"vin": VALID_VIN, "evaluationId": evaluation_id}, headers=other_user_headers
    )
    assert response.status_code == 403

    response = client.post(
        "/api/carfax/request", json={"vin": VALID_VIN, "evaluationId": evaluation_id}, headers=guest("c" * 32)
    )
    assert response.status_code == 404


def test_payment_methods(client):
    data = client.get("/api/payments/methods").json()["data"]
    assert [m["id"] for m in data] == ["card", "paypal", "apple_pay", "google_pay"]


def test_process_payment(client):
    response = client.post("/api/payments/process", json={**PAYMENT, "currency": "usd"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "completed"
    assert data["currency"] == "USD"
    assert data["description"] == "Carfax Vehicle History Report"
    assert data["receipt"]["receiptUrl"].endswith(data["transactionId"])


def test_process_payment_validation(client):
    response = client.post("/api/payments/process", json={**PAYMENT, "amount": 0})
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "amount"


def test_declined_payment(client):
    client.app.dependency_overrides[get_payment_processor] = lambda: MockPaymentProcessor(
        random.Random(0), success_rate=0.0, min_delay=0, max_delay=0
    )
    response = client.post("/api/payments/process", json=PAYMENT)
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Payment processing failed. Please try again.",
        "errors": [{"code": "PAYMENT_DECLINED"}],
    }


@pytest.mark.asyncio
async def test_processor_waits_for_simulated_latency():
    processor = MockPaymentProcessor(random.Random(0), success_rate=1.0, min_delay=0.01, max_delay=0.02)
    result = await processor.process(PaymentRequest(amount=10, payment_method="card", service_type="other"))
    assert result.description == "CarBuyGuru Service"


@pytest.mark.asyncio
async def test_processor_declines():
    processor = MockPaymentProcessor(random.Random(0), success_rate=0.0, min_delay=0, max_delay=0)
    with pytest.raises(PaymentDeclined):
        await processor.process(PaymentRequest(amount=10, payment_method="card", service_type="carfax"))


def test_car_search(client):
    body = client.get("/api/cars/search?q=ci").json()["data"]
    assert {"type": "model", "make": "Honda", "model": "Civic"} in body["results"]
    assert body["total"] == len(body["results"])

    honda = client.get("/api/cars/search?make=Honda").json()["data"]
    assert [r["model"] for r in honda["results"]] == ["Civic", "Accord", "CR-V", "Pilot"]

    everything = client.get("/api/cars/search").json()["data"]
    assert everything["total"] == 8


def test_car_search_query_too_short(client):
    response = client.get("/api/cars/search?q=a")
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "q"


def test_car_info(client):
    response = client.get("/api/cars/info/2020/Toyota/Camry")
    assert response.status_code == 200
    data = response.json()["data"]
    assert (data["year"], data["make"], data["model"]) == (2020, "Toyota", "Camry")
    assert 20 <= data["fuelEconomy"]["city"] <= 29
    assert client.get("/api/cars/info/1980/Toyota/Camry").status_code == 400


def test_market_data(client):
    response = client.get("/api/cars/market-data?year=2019&make=Ford&model=Escape&mileage=40000")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["priceRange"]["low"] <= data["estimatedValue"] <= data["priceRange"]["high"]
    assert len(data["comparable"]) == 3

    assert client.get("/api/cars/market-data?year=2019&make=Ford&model=Escape").status_code == 400

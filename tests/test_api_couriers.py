import pytest

from conftest import GROUP_ID, category_payload, courier_payload, order_payload

FEE = 2000


@pytest.fixture
def offer(client):
    """A courier-delivery order with its open assignment, plus one courier."""
    courier = client.post("/api/couriers", json=courier_payload()).json()
    order = client.post("/api/orders", json=order_payload(customerTelegramId="9001")).json()
    assignment = client.get("/api/assignments").json()[0]
    return courier, order, assignment


def accept(client, order, assignment, telegram_id="5001"):
    return client.post(
        "/api/courier/accept-order",
        json={"orderId": order["id"], "assignmentId": assignment["id"], "telegramId": telegram_id},
    )


def test_courier_crud(client):
    cat = client.post("/api/categories", json=category_payload()).json()
    courier = client.post("/api/couriers", json=courier_payload(categoryId=cat["id"])).json()
    assert courier["balance"] == 10000
    assert courier["isActive"] is True

    assert client.post("/api/couriers", json=courier_payload()).status_code == 400

    updated = client.patch(f"/api/couriers/{courier['id']}", json={"name": "Sardor"}).json()
    assert updated["name"] == "Sardor"
    assert updated["telegramId"] == "5001"

    assert [c["id"] for c in client.get("/api/couriers", params={"categoryId": cat["id"]}).json()] == [courier["id"]]
    assert client.get("/api/couriers", params={"categoryId": "other"}).json() == []

    assert client.delete(f"/api/couriers/{courier['id']}").json() == {"success": True}
    assert client.get(f"/api/couriers/{courier['id']}").status_code == 404


def test_accept_debits_fee(client, offer):
    courier, order, assignment = offer

    res = accept(client, order, assignment)

    assert res.status_code == 200, res.text
    assert res.json()["assignment"]["courierId"] == courier["id"]
    assert res.json()["assignment"]["status"] == "accepted"
    assert client.get(f"/api/couriers/{courier['id']}").json()["balance"] == 10000 - FEE
    assert client.get(f"/api/orders/{order['id']}").json()["status"] == "processing"

    txs = client.get("/api/courier-transactions", params={"courierId": courier["id"]}).json()
    assert [(t["type"], t["amount"]) for t in txs] == [("order_debit", -FEE)]


def test_second_accept_loses(client, offer):
    courier, order, assignment = offer
    other = client.post("/api/couriers", json=courier_payload(telegramId="5002", cardNumber="2")).json()

    assert accept(client, order, assignment).status_code == 200
    res = accept(client, order, assignment, telegram_id="5002")

    assert res.status_code == 409
    assert client.get(f"/api/couriers/{other['id']}").json()["balance"] == 10000
    assert client.get(f"/api/couriers/{courier['id']}").json()["balance"] == 10000 - FEE


def test_accept_with_insufficient_balance(client):
    client.post("/api/couriers", json=courier_payload(balance=FEE - 1))
    order = client.post("/api/orders", json=order_payload()).json()
    assignment = client.get("/api/assignments").json()[0]

    res = accept(client, order, assignment)

    assert res.status_code == 400
    assert res.json()["error"] == "Insufficient balance"
    assert client.get("/api/assignments").json()[0]["status"] == "pending"


def test_inactive_courier_cannot_accept(client, offer):
    courier, order, assignment = offer
    client.patch(f"/api/couriers/{courier['id']}", json={"isActive": False})

    assert accept(client, order, assignment).status_code == 403


def test_accept_unknown_courier_or_order(client, offer):
    courier, order, assignment = offer

    assert accept(client, order, assignment, telegram_id="nobody").status_code == 404
    assert accept(client, {"id": "missing"}, assignment).status_code == 404


def test_accept_notifies_everyone(client, telegram, bot_enabled, offer):
    courier, order, assignment = offer

    accept(client, order, assignment)

    assert "QABUL QILINDI" in telegram.sent_to("9001")[-1]["text"]
    assert "QABUL QILINDI" in telegram.sent_to(GROUP_ID)[-1]["text"]
    assert order["orderNumber"] in telegram.sent_to("5001")[-1]["text"]


def test_reject_keeps_order_status(client, offer):
    courier, order, assignment = offer

    res = client.post(
        "/api/courier/reject-order",
        json={"orderId": order["id"], "assignmentId": assignment["id"], "telegramId": "5001"},
    )

    assert res.json() == {"success": True}
    assert client.get("/api/assignments").json()[0]["status"] == "rejected"
    assert client.get(f"/api/orders/{order['id']}").json()["status"] == "new"


def reject(client, order, assignment, telegram_id="5001"):
    return client.post(
        "/api/courier/reject-order",
        json={"orderId": order["id"], "assignmentId": assignment["id"], "telegramId": telegram_id},
    )


def test_reject_cannot_void_another_couriers_accept(client, offer):
    courier, order, assignment = offer
    client.post("/api/couriers", json=courier_payload(telegramId="5002", cardNumber="2"))
    assert accept(client, order, assignment).status_code == 200

    res = reject(client, order, assignment, telegram_id="5002")

    assert res.status_code == 409
    kept = client.get("/api/assignments").json()[0]
    assert kept["status"] == "accepted"
    assert kept["courierId"] == courier["id"]
    assert client.get(f"/api/orders/{order['id']}").json()["status"] == "processing"


def test_reject_checks_assignment_belongs_to_order(client, offer):
    courier, order, assignment = offer
    other_order = client.post("/api/orders", json=order_payload()).json()

    assert reject(client, other_order, assignment).status_code == 404
    assert reject(client, order, {"id": "missing"}).status_code == 404
    assert client.get("/api/assignments").json()[-1]["status"] == "pending"


def test_reject_twice_is_409(client, offer):
    courier, order, assignment = offer

    assert reject(client, order, assignment).status_code == 200
    assert reject(client, order, assignment).status_code == 409
    assert accept(client, order, assignment).status_code == 409


def test_accept_reopens_offer_when_balance_drained_meanwhile(client, storage, offer, monkeypatch):
    courier, order, assignment = offer
    claim = storage.claim_assignment

    def claim_after_other_debit(*args, **kwargs):
        # another order's fee lands between the balance check and the claim
        storage.debit_courier_balance(courier["id"], 9000, "order_debit", "boshqa buyurtma")
        return claim(*args, **kwargs)

    monkeypatch.setattr(storage, "claim_assignment", claim_after_other_debit)

    res = accept(client, order, assignment)

    assert res.status_code == 400
    assert res.json()["error"] == "Insufficient balance"
    assert client.get(f"/api/couriers/{courier['id']}").json()["balance"] == 1000
    reopened = storage.get_assignment_by_id(assignment["id"])
    assert reopened.status == "pending"
    assert reopened.courier_id is None
    assert client.get(f"/api/orders/{order['id']}").json()["status"] == "new"


def test_status_updates_follow_assignment(client, telegram, bot_enabled, offer):
    courier, order, assignment = offer
    accept(client, order, assignment)

    res = client.post("/api/courier/update-order-status", json={"orderId": order["id"], "status": "shipping"})
    assert res.json()["order"]["status"] == "shipping"
    assert client.get("/api/assignments").json()[0]["status"] == "shipping"
    assert "YO'LDA" in telegram.sent_to("9001")[-1]["text"]

    client.post("/api/courier/update-order-status", json={"orderId": order["id"], "status": "delivered"})
    assert client.get("/api/assignments").json()[0]["status"] == "delivered"
    assert client.get(f"/api/orders/{order['id']}").json()["status"] == "delivered"


def test_status_update_rejects_unknown_status(client, offer):
    courier, order, assignment = offer
    res = client.post("/api/courier/update-order-status", json={"orderId": order["id"], "status": "new"})
    assert res.status_code == 400


def test_dashboard_lists_open_and_own_assignments(client, offer):
    courier, order, assignment = offer
    client.post("/api/orders", json=order_payload(customerPhone="+998911111111"))
    client.post("/api/courier/update-location", json={"telegramId": "5001", "latitude": 41.3, "longitude": 69.2})

    dash = client.get("/api/courier-dashboard/5001").json()

    assert dash["courier"]["id"] == courier["id"]
    assert dash["courier"]["latitude"] == 41.3
    assert len(dash["assignments"]) == 2
    assert all(a["order"] is not None for a in dash["assignments"])

    assert client.get("/api/courier-dashboard/unknown").status_code == 404


def test_dashboard_hides_assignments_taken_by_others(client, offer):
    courier, order, assignment = offer
    client.post("/api/couriers", json=courier_payload(telegramId="5002", cardNumber="2"))
    accept(client, order, assignment, telegram_id="5002")

    assert client.get("/api/courier-dashboard/5001").json()["assignments"] == []
    assert len(client.get("/api/courier-dashboard/5002").json()["assignments"]) == 1


def test_transfer_between_couriers(client):
    sender = client.post("/api/couriers", json=courier_payload()).json()
    receiver = client.post("/api/couriers", json=courier_payload(telegramId="5002", cardNumber="8600000000000002")).json()

    res = client.post(
        "/api/courier/transfer",
        json={"fromTelegramId": "5001", "toCardNumber": "8600000000000002", "amount": 3000},
    )

    body = res.json()
    assert body["success"] is True
    assert body["senderBalance"] == 7000
    assert body["receiverBalance"] == 13000

    types = {t["type"] for t in client.get("/api/courier-transactions").json()}
    assert types == {"transfer_out", "transfer_in"}
    assert client.get(f"/api/couriers/{receiver['id']}").json()["balance"] == 13000
    assert client.get(f"/api/couriers/{sender['id']}").json()["balance"] == 7000


@pytest.mark.parametrize(
    "to_card, amount, status",
    [
        ("8600000000000002", 999999, 400),
        ("8600000000000001", 100, 400),
        ("0000", 100, 404),
    ],
)
def test_transfer_errors(client, to_card, amount, status):
    client.post("/api/couriers", json=courier_payload())
    client.post("/api/couriers", json=courier_payload(telegramId="5002", cardNumber="8600000000000002"))

    res = client.post(
        "/api/courier/transfer",
        json={"fromTelegramId": "5001", "toCardNumber": to_card, "amount": amount},
    )

    assert res.status_code == status


def test_admin_balance_adjustment(client):
    courier = client.post("/api/couriers", json=courier_payload()).json()
    url = f"/api/couriers/{courier['id']}/balance"

    assert client.patch(url, json={"amount": 5000, "type": "credit"}).json()["balance"] == 15000
    assert client.patch(url, json={"amount": 1000, "type": "debit"}).json()["balance"] == 14000
    assert client.patch(url, json={"amount": 0, "type": "credit"}).status_code == 400
    assert client.patch(url, json={"amount": 10, "type": "gift"}).status_code == 400
    assert client.patch("/api/couriers/missing/balance", json={"amount": 10, "type": "credit"}).status_code == 404

    types = sorted(t["type"] for t in client.get("/api/courier-transactions", params={"courierId": courier["id"]}).json())
    assert types == ["admin_credit", "admin_debit"]

PHONE = "+998901234567"


def send(client, message, sender="customer", phone=PHONE, name="Aziz"):
    return client.post(
        "/api/chat/send",
        json={"customerPhone": phone, "customerName": name, "message": message, "senderType": sender},
    )


def test_send_and_read_conversation(client):
    res = send(client, "Salom, buyurtmam qachon keladi?")

    assert res.status_code == 201
    body = res.json()
    assert body["isRead"] is False
    assert body["senderType"] == "customer"
    assert "createdAt" in body

    send(client, "Bugun kechqurun", sender="admin")

    thread = client.get(f"/api/chat/{PHONE}").json()
    assert [(m["senderType"], m["message"]) for m in thread] == [
        ("customer", "Salom, buyurtmam qachon keladi?"),
        ("admin", "Bugun kechqurun"),
    ]
    assert client.get("/api/chat/+998900000000").json() == []


def test_send_requires_every_field(client):
    assert client.post("/api/chat/send", json={"customerPhone": PHONE, "message": "Salom"}).status_code == 400
    assert send(client, "").status_code == 400
    assert send(client, "Salom", sender="courier").status_code == 400
    assert client.get(f"/api/chat/{PHONE}").json() == []


def test_rooms_list_for_admin(client):
    send(client, "Salom")
    send(client, "Mahsulot bormi?", phone="+998907654321", name="Dilnoza")
    send(client, "Va alaykum assalom", sender="admin")

    rooms = client.get("/api/chat/rooms").json()

    assert [r["customerPhone"] for r in rooms] == [PHONE, "+998907654321"]
    assert rooms[0]["lastMessage"]["message"] == "Va alaykum assalom"
    assert rooms[0]["customerName"] == "Aziz"
    assert [r["unreadCount"] for r in rooms] == [1, 1]


def test_mark_room_read(client):
    send(client, "Salom")
    send(client, "Javob bering")

    res = client.post(f"/api/chat/{PHONE}/read")

    assert res.json() == {"success": True, "updated": 2}
    assert client.get("/api/chat/rooms").json()[0]["unreadCount"] == 0
    assert all(m["isRead"] for m in client.get(f"/api/chat/{PHONE}").json())

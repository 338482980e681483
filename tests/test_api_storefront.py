from conftest import category_payload, order_payload, product_payload


def create_product(client, **overrides):
    cat = client.post("/api/categories", json=category_payload()).json()
    res = client.post("/api/products", json=product_payload(cat["id"], **overrides))
    assert res.status_code == 201, res.text
    return res.json()


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200


def test_catalog_to_cart_flow(client):
    cat = client.post("/api/categories", json=category_payload()).json()
    assert cat["slug"] == "elektronika"

    product = client.post("/api/products", json=product_payload(cat["id"])).json()
    assert product["categoryId"] == cat["id"]
    assert product["rating"] == 0

    listed = client.get("/api/products", params={"categoryId": cat["id"]}).json()
    assert [p["id"] for p in listed] == [product["id"]]

    item = {"sessionId": "sess-1", "productId": product["id"], "quantity": 2}
    first = client.post("/api/cart", json=item)
    assert first.status_code == 201
    client.post("/api/cart", json={**item, "quantity": 1})

    cart = client.get("/api/cart", params={"sessionId": "sess-1"}).json()
    assert len(cart) == 1, "same product and variant must merge into one row"
    assert cart[0]["quantity"] == 3
    assert cart[0]["product"]["name"] == "Smartfon"


def test_product_by_slug_or_id(client):
    product = create_product(client)

    by_id = client.get(f"/api/products/{product['id']}")
    by_slug = client.get("/api/products/smartfon")

    assert by_id.status_code == 200
    assert by_slug.json()["id"] == product["id"]


def test_category_by_slug(client):
    cat = client.post("/api/categories", json=category_payload()).json()
    assert client.get("/api/categories/elektronika").json()["id"] == cat["id"]


def test_missing_product_is_404_with_error_body(client):
    res = client.get("/api/products/no-such-thing")
    assert res.status_code == 404
    assert res.json() == {"error": "Product not found"}


def test_invalid_body_is_400(client):
    res = client.post("/api/products", json={"name": "Nomsiz"})
    assert res.status_code == 400
    assert "error" in res.json()


def test_duplicate_slug_is_400(client):
    client.post("/api/categories", json=category_payload())
    res = client.post("/api/categories", json=category_payload(name="Boshqa"))
    assert res.status_code == 400


def test_product_update_and_delete(client):
    product = create_product(client)

    res = client.patch(f"/api/products/{product['id']}", json={"price": 90000, "isPopular": True})
    assert res.json()["price"] == 90000
    assert res.json()["isPopular"] is True
    assert res.json()["name"] == "Smartfon"

    assert client.delete(f"/api/products/{product['id']}").json() == {"success": True}
    assert client.delete(f"/api/products/{product['id']}").status_code == 404


def test_product_update_null_price_is_400(client):
    product = create_product(client)

    res = client.patch(f"/api/products/{product['id']}", json={"price": None})

    assert res.status_code == 400
    assert "error" in res.json()
    listed = client.get("/api/products").json()
    assert [p["price"] for p in listed] == [product["price"]]
    cleared = client.patch(f"/api/products/{product['id']}", json={"oldPrice": None})
    assert cleared.status_code == 200
    assert cleared.json()["oldPrice"] is None


def test_reorder_categories(client):
    a = client.post("/api/categories", json=category_payload(slug="a")).json()
    b = client.post("/api/categories", json=category_payload(slug="b")).json()

    res = client.post(
        "/api/categories/reorder",
        json={"categories": [{"id": a["id"], "order": 1}, {"id": b["id"], "order": 0}]},
    )

    assert res.json() == {"success": True, "updated": 2}
    assert client.get(f"/api/categories/{b['id']}").json()["order"] == 0


def test_cart_requires_session(client):
    res = client.get("/api/cart")
    assert res.status_code == 400
    assert res.json()["error"] == "Session ID required"


def test_cart_quantity_update_and_removal(client):
    product = create_product(client)
    item = client.post("/api/cart", json={"sessionId": "s", "productId": product["id"]}).json()

    res = client.patch(f"/api/cart/{item['id']}", json={"quantity": 4})
    assert res.json()["quantity"] == 4

    assert client.patch(f"/api/cart/{item['id']}", json={"quantity": 0}).status_code == 400
    assert client.patch("/api/cart/missing", json={"quantity": 1}).status_code == 404

    assert client.delete(f"/api/cart/{item['id']}").json() == {"success": True}
    assert client.get("/api/cart", params={"sessionId": "s"}).json() == []


def test_cart_clear(client):
    product = create_product(client)
    client.post("/api/cart", json={"sessionId": "s", "productId": product["id"]})

    assert client.delete("/api/cart/session/s").json() == {"success": True}
    assert client.get("/api/cart", params={"sessionId": "s"}).json() == []


def test_cart_summary_counts_container_price(client):
    product = create_product(client, containers=["Quti|5000"])
    client.post(
        "/api/cart",
        json={"sessionId": "s", "productId": product["id"], "quantity": 2, "selectedContainer": "Quti|5000"},
    )

    summary = client.get("/api/cart/summary", params={"sessionId": "s"}).json()

    assert summary["itemCount"] == 2
    assert summary["subtotal"] == 210000


def test_checkout_quote(client):
    product = create_product(client)
    client.post("/api/cart", json={"sessionId": "s", "productId": product["id"], "quantity": 2})
    client.post("/api/promo-codes", json={"code": "SALE10", "discountPercent": 10})

    quote = client.post("/api/checkout/quote", json={"sessionId": "s", "promoCode": "sale10"}).json()

    assert quote["subtotal"] == 200000
    assert quote["deliveryPrice"] == 15000
    assert quote["discount"] == 20000
    assert quote["total"] == 195000
    assert quote["promoCode"] == "SALE10"


def test_checkout_quote_free_delivery_and_pickup(client):
    product = create_product(client, price=600000)
    client.post("/api/cart", json={"sessionId": "s", "productId": product["id"]})

    courier = client.post("/api/checkout/quote", json={"sessionId": "s"}).json()
    assert courier["deliveryPrice"] == 0

    client.patch("/api/settings", json={"freeDeliveryThreshold": 1000000})
    courier = client.post("/api/checkout/quote", json={"sessionId": "s"}).json()
    pickup = client.post("/api/checkout/quote", json={"sessionId": "s", "deliveryType": "pickup"}).json()
    assert courier["deliveryPrice"] == 15000
    assert pickup["deliveryPrice"] == 0


def test_checkout_quote_empty_cart(client):
    res = client.post("/api/checkout/quote", json={"sessionId": "empty"})
    assert res.status_code == 400
    assert res.json()["error"] == "Cart is empty"


def test_orders_roll_up_into_customer(client):
    first = client.post("/api/orders", json=order_payload())
    assert first.status_code == 201, first.text
    client.post("/api/orders", json=order_payload(subtotal=50000, deliveryPrice=0, total=50000))

    customers = client.get("/api/customers").json()
    assert len(customers) == 1
    assert customers[0]["phone"] == "+998900000000"
    assert customers[0]["totalOrders"] == 2
    assert customers[0]["totalSpent"] == 165000

    one = client.get(f"/api/customers/{customers[0]['id']}")
    assert one.json()["name"] == "Aziz"
    assert client.get("/api/customers/missing").status_code == 404


def test_promo_validate(client):
    client.post("/api/promo-codes", json={"code": "SALE10", "discountPercent": 10})

    res = client.post("/api/promo-codes/validate", json={"code": "sale10"})
    assert res.json() == {"valid": True, "discountPercent": 10, "code": "SALE10"}

    res = client.post("/api/promo-codes/validate", json={"code": "NOPE"})
    assert res.json() == {"valid": False, "error": "Invalid code"}

    res = client.post("/api/promo-codes/validate", json={})
    assert res.status_code == 400
    assert res.json() == {"valid": False, "error": "Code required"}


def test_promo_validate_inactive_and_exhausted(client):
    off = client.post("/api/promo-codes", json={"code": "OFF", "discountPercent": 5, "isActive": False}).json()
    one = client.post("/api/promo-codes", json={"code": "ONE", "discountPercent": 5, "usageLimit": 1}).json()
    client.patch(f"/api/promo-codes/{one['id']}", json={"usageCount": 1})

    assert client.post("/api/promo-codes/validate", json={"code": "OFF"}).json()["error"] == "Code is not active"
    assert client.post("/api/promo-codes/validate", json={"code": "ONE"}).json()["error"] == "Code usage limit reached"

    assert client.delete(f"/api/promo-codes/{off['id']}").json() == {"success": True}
    assert len(client.get("/api/promo-codes").json()) == 1


def test_reviews_update_product_rating(client):
    product = create_product(client)

    for rating in (5, 3):
        res = client.post(
            "/api/reviews",
            json={"productId": product["id"], "customerName": "Dilnoza", "rating": rating, "comment": "Yaxshi"},
        )
        assert res.status_code == 201

    reviews = client.get(f"/api/reviews/{product['id']}").json()
    assert len(reviews) == 2

    refreshed = client.get(f"/api/products/{product['id']}").json()
    assert refreshed["rating"] == 4
    assert refreshed["reviewCount"] == 2


def test_review_rating_out_of_range(client):
    product = create_product(client)
    res = client.post("/api/reviews", json={"productId": product["id"], "customerName": "A", "rating": 6})
    assert res.status_code == 400


def test_public_advertisements_only_active(client):
    client.post(
        "/api/admin/advertisements",
        json={"businessName": "Ochiq", "description": "d", "imageUrl": "https://x/1.jpg"},
    )
    client.post(
        "/api/admin/advertisements",
        json={"businessName": "Yopiq", "description": "d", "imageUrl": "https://x/2.jpg", "isActive": False},
    )

    public = client.get("/api/advertisements").json()
    assert [a["businessName"] for a in public] == ["Ochiq"]
    assert len(client.get("/api/admin/advertisements").json()) == 2

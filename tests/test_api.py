async def login(client, email="priya@example.com", role="customer"):
    response = await client.post("/api/auth/login", json={"email": email, "role": role})
    assert response.status_code == 200
    body = response.json()
    return {"Authorization": f"Bearer {body['accessToken']}"}, body["user"]


async def test_root(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["currency"] == "INR"


async def test_products_listing_uses_camel_case(client):
    response = await client.get("/api/products/", params={"category": "rings", "sortBy": "price-low"})

    assert response.status_code == 200
    body = response.json()
    assert [p["name"] for p in body] == ["Solitaire Diamond Ring", "Platinum Eternity Band"]
    assert "designerId" in body[0]


async def test_missing_product_is_404(client):
    response = await client.get("/api/products/999")

    assert response.status_code == 404
    assert response.json() == {"detail": "Product 999 not found"}


async def test_cart_and_checkout_flow(client):
    added = await client.post("/api/cart/", json={"productId": 1, "quantity": 1, "selectedOptions": {"size": "12"}})
    assert added.status_code == 201

    total = (await client.get("/api/cart/total")).json()
    assert total["subtotal"] == 91500
    assert total["shipping"] == 0
    assert total["itemCount"] == 2

    shipping = {
        "firstName": "Priya", "lastName": "Sharma", "email": "priya@example.com", "phone": "9876543210",
        "address": "12 MG Road", "city": "Bengaluru", "state": "Karnataka", "pincode": "560001",
    }
    placed = await client.post("/api/cart/checkout", json={"shipping": shipping, "paymentMethod": "card"})
    assert placed.status_code == 201
    assert placed.json()["orderNumber"].startswith("JC-")
    assert (await client.get("/api/cart/")).json() == []

    again = await client.post("/api/cart/checkout", json={"shipping": shipping})
    assert again.status_code == 400


async def test_custom_order_lifecycle_over_http(client):
    created = await client.post("/api/custom-orders/", json={
        "customerId": "CUST001",
        "specifications": {"type": "Ring", "metal": "Gold"},
        "budget": 50000,
    })
    assert created.status_code == 201
    order = created.json()
    assert order["status"] == "Order Received"
    assert order["progress"] == {
        "phase": "received", "currentMilestoneId": 2, "assigned": False, "designerId": None,
    }

    assigned = await client.post(f"/api/custom-orders/{order['id']}/assign",
                                 json={"designerId": 1, "designerName": "Asha"})
    assert assigned.json()["status"] == "Assigned"

    for milestone_id in range(1, 9):
        response = await client.patch(f"/api/custom-orders/{order['id']}/milestones/{milestone_id}",
                                      json={"status": "completed"})
        assert response.status_code == 200

    final = response.json()
    assert final["status"] == "Completed"
    assert final["currentMilestone"] == "Completed"
    assert final["designerName"] == "Asha"
    assert final["progress"]["phase"] == "completed"

    missing = await client.patch(f"/api/custom-orders/{order['id']}/milestones/12", json={"status": "completed"})
    assert missing.status_code == 404


async def test_invalid_budget_is_rejected(client):
    response = await client.post("/api/custom-orders/", json={
        "customerId": "CUST001", "specifications": {"type": "Ring"}, "budget": 0,
    })
    assert response.status_code == 422


async def test_my_orders_needs_a_token(client):
    assert (await client.get("/api/custom-orders/mine")).status_code == 401

    headers, user = await login(client)
    response = await client.get("/api/custom-orders/mine", headers=headers)
    assert response.status_code == 200
    assert {o["customerId"] for o in response.json()} == {user["id"]}


async def test_token_stops_working_after_logout(client):
    headers, _ = await login(client)
    assert (await client.get("/api/auth/me", headers=headers)).status_code == 200

    await client.post("/api/auth/logout")
    assert (await client.get("/api/auth/me", headers=headers)).status_code == 401


async def test_profile_update(client):
    headers, _ = await login(client)
    response = await client.patch("/api/auth/me", headers=headers, json={"name": "Priya S."})

    assert response.status_code == 200
    assert response.json()["name"] == "Priya S."
    assert response.json()["id"] == "CUST001"


async def test_user_listing_is_admin_only(client):
    headers, _ = await login(client)
    assert (await client.get("/api/auth/users", headers=headers)).status_code == 403

    headers, _ = await login(client, "admin@jewelcraft.in", "admin")
    response = await client.get("/api/auth/users", headers=headers)
    assert response.status_code == 200
    assert len(response.json()) == 3


async def test_unknown_login_is_404(client):
    response = await client.post("/api/auth/login", json={"email": "ghost@jewelcraft.in"})
    assert response.status_code == 404


async def test_designer_upload_over_http(client):
    response = await client.post("/api/designers/2/uploads", json={
        "name": "Tourmaline Cocktail Ring", "category": "Rings", "metal": "Gold", "price": 45000,
    })
    assert response.status_code == 201
    body = response.json()
    assert body["product"]["designerId"] == 2
    assert body["designer"]["portfolio"][-1]["title"] == "Tourmaline Cocktail Ring"

    by_designer = (await client.get("/api/products/by-designer/2")).json()
    assert body["product"]["id"] in [p["id"] for p in by_designer]


async def test_custom_orders_filter_by_customer_id(client):
    response = await client.get("/api/custom-orders/", params={"customerId": "CUST001"})

    assert response.status_code == 200
    assert {o["customerId"] for o in response.json()} == {"CUST001"}


async def test_designers_filter_by_min_rating(client):
    response = await client.get("/api/designers/", params={"minRating": 4.8})

    assert response.status_code == 200
    assert [d["rating"] for d in response.json()] == [4.9]


async def test_custom_orders_filter_by_designer_id(client):
    response = await client.get("/api/custom-orders/", params={"designerId": 1})

    assert response.status_code == 200
    assert [o["id"] for o in response.json()] == [1]

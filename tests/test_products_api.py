from conftest import login_admin

NEW_PRODUCT = {
    "name": "Ensaymada",
    "description": "Buttery brioche topped with cheese and sugar",
    "price": "55.00",
    "category": "pastries",
}


def test_public_catalog_lists_seeded_products(client):
    response = client.get("/api/products")
    assert response.status_code == 200
    products = response.json()
    assert [product["name"] for product in products] == [
        "Pandesal", "Butter Croissant", "Whole Wheat Bread", "Vanilla Cupcake",
    ]
    assert products[0]["price"] == "5.00"
    assert "imageUrl" in products[0]
    assert "createdAt" in products[0]


def test_admin_creates_product(admin_client):
    response = admin_client.post("/api/products", json=NEW_PRODUCT)
    assert response.status_code == 201
    created = response.json()
    assert created["id"] > 0
    assert created["available"] is True
    assert created["imageUrl"] is None

    catalog = admin_client.get("/api/products").json()
    assert created["id"] in [product["id"] for product in catalog]


def test_get_single_product(client):
    response = client.get("/api/products/1")
    assert response.status_code == 200
    assert response.json()["name"] == "Pandesal"

    response = client.get("/api/products/999")
    assert response.status_code == 404
    assert response.json() == {"detail": "Product not found"}


def test_unavailable_products_hidden_from_public(admin_client):
    hidden = admin_client.post("/api/products", json=dict(NEW_PRODUCT, available=False)).json()

    public_ids = [product["id"] for product in admin_client.get("/api/products").json()]
    assert hidden["id"] not in public_ids

    admin_ids = [product["id"] for product in admin_client.get("/api/admin/products").json()]
    assert hidden["id"] in admin_ids


def test_update_product(admin_client):
    response = admin_client.put("/api/products/1", json=dict(NEW_PRODUCT, name="Pandesal XL", price="6.5"))
    assert response.status_code == 200
    updated = response.json()
    assert updated["name"] == "Pandesal XL"
    assert updated["price"] == "6.50"

    response = admin_client.put("/api/products/999", json=NEW_PRODUCT)
    assert response.status_code == 404


def test_delete_product(admin_client):
    response = admin_client.delete("/api/products/1")
    assert response.status_code == 204
    assert admin_client.get("/api/products/1").status_code == 404
    assert admin_client.delete("/api/products/1").status_code == 404


def test_invalid_product_rejected_with_field_errors(admin_client):
    response = admin_client.post("/api/products", json=dict(NEW_PRODUCT, price="-3"))
    assert response.status_code == 400
    fields = [error["field"] for error in response.json()["detail"]]
    assert "price" in fields

    response = admin_client.post("/api/products", json=dict(NEW_PRODUCT, price="1.999"))
    assert response.status_code == 400

    response = admin_client.post("/api/products", json={"description": "no name"})
    assert response.status_code == 400
    fields = [error["field"] for error in response.json()["detail"]]
    assert "name" in fields
    assert "price" in fields


def test_unauthenticated_product_writes_rejected(client):
    response = client.post("/api/products", json=NEW_PRODUCT)
    assert response.status_code == 401
    assert client.put("/api/products/1", json=NEW_PRODUCT).status_code == 401
    assert client.delete("/api/products/1").status_code == 401

    names = [product["name"] for product in client.get("/api/products").json()]
    assert "Ensaymada" not in names
    assert "Pandesal" in names


def test_customer_cannot_manage_products(client):
    client.post("/api/register", json={"username": "ana", "password": "secret"})
    response = client.post("/api/products", json=NEW_PRODUCT)
    assert response.status_code == 403
    assert response.json() == {"detail": "Not enough permissions"}


def test_categories(client):
    response = client.get("/api/categories")
    assert response.status_code == 200
    assert response.json() == {"categories": ["bread", "pastries"]}


def test_admin_listing_requires_admin(client, anon_client):
    assert anon_client.get("/api/admin/products").status_code == 401
    login_admin(client)
    assert client.get("/api/admin/products").status_code == 200

"""Tests for Product API endpoints."""
from datetime import datetime, timedelta

from sqlalchemy.exc import OperationalError

from inventory_api.services.product_service import ProductService


def test_create_product(client):
    """Test creating a new product."""
    response = client.post(
        "/api/products",
        json={
            "name": "Test Product",
            "unit": "pcs",
            "category": "Tools",
            "brand": "Acme",
            "stock": 10,
            "status": "In Stock",
            "image": "http://img.example.com/p.png"
        }
    )

    assert response.status_code == 201
    data = response.json()["product"]
    assert data["name"] == "Test Product"
    assert data["unit"] == "pcs"
    assert data["category"] == "Tools"
    assert data["brand"] == "Acme"
    assert data["stock"] == 10
    assert data["status"] == "In Stock"
    assert data["image"] == "http://img.example.com/p.png"
    assert isinstance(data["id"], int)


def test_create_product_defaults(client):
    """Test omitted fields default to empty strings and zero stock."""
    response = client.post("/api/products", json={"name": "Bare"})

    assert response.status_code == 201
    data = response.json()["product"]
    assert data["stock"] == 0
    for field in ("unit", "category", "brand", "status", "image"):
        assert data[field] == ""


def test_create_product_missing_name(client):
    """Test creating product without a name fails with 400."""
    response = client.post("/api/products", json={"name": "", "stock": 1})

    assert response.status_code == 400
    errors = response.json()["detail"]
    assert any(error["loc"][-1] == "name" for error in errors)


def test_create_product_invalid_stock(client):
    """Test creating product with negative stock fails."""
    response = client.post(
        "/api/products",
        json={"name": "Test Product", "stock": -5}
    )

    assert response.status_code == 400
    errors = response.json()["detail"]
    assert any(error["loc"][-1] == "stock" for error in errors)


def test_create_product_non_integer_stock(client):
    response = client.post(
        "/api/products",
        json={"name": "Test Product", "stock": "lots"}
    )

    assert response.status_code == 400


def test_create_product_duplicate_name(client, make_product):
    """Test creating a second product with the same name fails."""
    make_product("Widget")

    response = client.post("/api/products", json={"name": "Widget", "stock": 3})

    assert response.status_code == 400
    assert response.json()["detail"] == "Product name must be unique"


def test_create_product_name_is_case_sensitive(client, make_product):
    make_product("Widget")

    response = client.post("/api/products", json={"name": "widget"})

    assert response.status_code == 201


def test_created_product_is_listed(client, make_product):
    """Test a created product shows up in the list with a fresh id."""
    first = make_product("Alpha", category="A", stock=1)
    second = make_product("Beta", category="B", stock=2)

    response = client.get("/api/products")

    assert response.status_code == 200
    products = response.json()["products"]
    assert [p["name"] for p in products] == ["Alpha", "Beta"]
    assert first["id"] != second["id"]
    assert products[1] == second


def test_get_product(client, make_product):
    """Test getting a product by ID."""
    product = make_product("Test Product", stock=5)

    response = client.get(f"/api/products/{product['id']}")

    assert response.status_code == 200
    assert response.json()["product"]["name"] == "Test Product"


def test_get_product_not_found(client):
    """Test getting non-existent product returns 404."""
    response = client.get("/api/products/9999")

    assert response.status_code == 404


def test_search_products(client, make_product):
    """Test searching products by name, case-insensitively."""
    make_product("Apple iPhone")
    make_product("Samsung Galaxy")
    make_product("apple MacBook")

    response = client.get("/api/products?search=APPLE")

    assert response.status_code == 200
    names = {p["name"] for p in response.json()["products"]}
    assert names == {"Apple iPhone", "apple MacBook"}


def test_search_treats_wildcards_literally(client, make_product):
    make_product("100% Cotton")
    make_product("Wool")

    response = client.get("/api/products", params={"search": "%"})

    assert [p["name"] for p in response.json()["products"]] == ["100% Cotton"]


def test_filter_by_category(client, make_product):
    make_product("Hammer", category="Tools")
    make_product("Drill", category="Tools")
    make_product("Apple", category="Food")

    response = client.get("/api/products?category=Tools")
    assert {p["name"] for p in response.json()["products"]} == {"Hammer", "Drill"}

    response = client.get("/api/products?category=All")
    assert len(response.json()["products"]) == 3


def test_sort_by_stock_desc(client, make_product):
    make_product("Low", stock=1)
    make_product("High", stock=50)
    make_product("Mid", stock=10)

    response = client.get("/api/products?sort=stock&order=desc")

    assert [p["name"] for p in response.json()["products"]] == ["High", "Mid", "Low"]


def test_sort_falls_back_to_name_asc(client, make_product):
    """Test unknown sort field and order behave like sort=name&order=asc."""
    make_product("Charlie", stock=1)
    make_product("Alpha", stock=3)
    make_product("Bravo", stock=2)

    response = client.get(
        "/api/products", params={"sort": "id; DROP TABLE products", "order": "sideways"}
    )

    assert response.status_code == 200
    assert [p["name"] for p in response.json()["products"]] == ["Alpha", "Bravo", "Charlie"]


def test_list_empty(client):
    response = client.get("/api/products?search=nothing")

    assert response.status_code == 200
    assert response.json() == {"products": []}


def test_list_categories(client, make_product):
    """Test categories are distinct and exclude empty values."""
    make_product("Hammer", category="Tools")
    make_product("Drill", category="Tools")
    make_product("Apple", category="Food")
    make_product("Mystery")

    response = client.get("/api/products/categories")

    assert response.status_code == 200
    assert sorted(response.json()["categories"]) == ["Food", "Tools"]


def test_update_product(client, make_product):
    """Test updating replaces every field."""
    product = make_product("Original Name", unit="kg", brand="Acme", stock=10)

    response = client.put(
        f"/api/products/{product['id']}",
        json={"name": "Updated Name", "stock": 10, "category": "New"}
    )

    assert response.status_code == 200
    data = response.json()["product"]
    assert data["id"] == product["id"]
    assert data["name"] == "Updated Name"
    assert data["category"] == "New"
    assert data["stock"] == 10
    # Omitted fields are reset
    assert data["unit"] == ""
    assert data["brand"] == ""


def test_update_product_keeps_own_name(client, make_product):
    """Test updating a product with its unchanged name is not a conflict."""
    product = make_product("Widget", stock=1)

    response = client.put(f"/api/products/{product['id']}", json={"name": "Widget", "stock": 2})

    assert response.status_code == 200


def test_update_product_duplicate_name(client, make_product):
    make_product("Taken")
    product = make_product("Free")

    response = client.put(f"/api/products/{product['id']}", json={"name": "Taken", "stock": 0})

    assert response.status_code == 400
    assert response.json()["detail"] == "Product name must be unique"


def test_update_product_not_found(client):
    response = client.put("/api/products/9999", json={"name": "Ghost", "stock": 1})

    assert response.status_code == 404


def test_update_product_invalid_stock(client, make_product):
    product = make_product("Widget", stock=1)

    response = client.put(f"/api/products/{product['id']}", json={"name": "Widget", "stock": -1})

    assert response.status_code == 400


def test_update_stock_writes_history(client, make_product):
    """Test a stock change is logged with old and new quantities."""
    product = make_product("Widget", stock=5)

    client.put(
        f"/api/products/{product['id']}",
        json={"name": "Widget", "stock": 8, "userInfo": "alice"}
    )

    response = client.get(f"/api/products/{product['id']}/history")

    assert response.status_code == 200
    history = response.json()["history"]
    assert len(history) == 1
    assert history[0]["product_id"] == product["id"]
    assert history[0]["old_quantity"] == 5
    assert history[0]["new_quantity"] == 8
    assert history[0]["user_info"] == "alice"
    assert history[0]["change_date"]


def test_update_without_stock_change_writes_no_history(client, make_product):
    product = make_product("Widget", stock=5)

    client.put(f"/api/products/{product['id']}", json={"name": "Renamed", "stock": 5})

    response = client.get(f"/api/products/{product['id']}/history")
    assert response.json()["history"] == []


def test_history_defaults_user_and_orders_newest_first(client, make_product):
    product = make_product("Widget", stock=1)

    for stock in (2, 3, 4):
        client.put(f"/api/products/{product['id']}", json={"name": "Widget", "stock": stock})

    history = client.get(f"/api/products/{product['id']}/history").json()["history"]

    assert [(h["old_quantity"], h["new_quantity"]) for h in history] == [(3, 4), (2, 3), (1, 2)]
    assert all(h["user_info"] == "system" for h in history)


def test_history_unknown_product_is_empty(client):
    response = client.get("/api/products/9999/history")

    assert response.status_code == 200
    assert response.json() == {"history": []}


def test_delete_product(client, make_product):
    """Test deleting a product."""
    product = make_product("To Delete", stock=5)

    response = client.delete(f"/api/products/{product['id']}")
    assert response.status_code == 200
    assert response.json() == {"success": True}

    # Verify it's deleted
    get_response = client.get(f"/api/products/{product['id']}")
    assert get_response.status_code == 404


def test_delete_product_removes_history(client, make_product):
    product = make_product("Widget", stock=1)
    client.put(f"/api/products/{product['id']}", json={"name": "Widget", "stock": 2})

    client.delete(f"/api/products/{product['id']}")

    response = client.get(f"/api/products/{product['id']}/history")
    assert response.json()["history"] == []


def test_delete_product_not_found(client):
    response = client.delete("/api/products/9999")

    assert response.status_code == 404


def test_history_change_date_is_utc(client, make_product):
    product = make_product("Widget", stock=1)
    client.put(f"/api/products/{product['id']}", json={"name": "Widget", "stock": 2})

    change_date = client.get(f"/api/products/{product['id']}/history").json()["history"][0]["change_date"]

    parsed = datetime.fromisoformat(change_date.replace("Z", "+00:00"))
    assert parsed.utcoffset() == timedelta(0)


def test_history_non_numeric_id_is_empty(client):
    response = client.get("/api/products/abc/history")

    assert response.status_code == 200
    assert response.json() == {"history": []}


def test_non_numeric_id_is_not_found(client):
    assert client.get("/api/products/abc").status_code == 404
    assert client.put("/api/products/abc", json={"name": "Ghost", "stock": 1}).status_code == 404
    assert client.delete("/api/products/abc").status_code == 404


def test_storage_error_returns_generic_500(client, monkeypatch):
    """Test a database failure is reported without internal detail."""
    def broken_get_all(self, **filters):
        raise OperationalError("SELECT * FROM products ORDER BY name", {}, Exception("disk I/O error"))

    monkeypatch.setattr(ProductService, "get_all", broken_get_all)

    response = client.get("/api/products")

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}
    assert "SELECT" not in response.text
    assert "disk" not in response.text

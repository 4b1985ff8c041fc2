import pytest
from bson import ObjectId

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def product_form(**overrides):
    form = {"name": "Suya Platter", "description": "Spicy grilled beef", "price": "12.5", "category": "Grills"}
    form.update(overrides)
    return form


def test_create_product_without_image(client):
    res = client.post("/api/products", data=product_form())
    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    product = body["product"]
    assert product["name"] == "Suya Platter"
    assert product["price"] == 12.5
    assert product["imageUrl"] == ""
    assert product["id"]


def test_create_product_trims_fields(client):
    res = client.post("/api/products", data=product_form(name="  Wings ", category=" Sides "))
    product = res.json()["product"]
    assert product["name"] == "Wings"
    assert product["category"] == "Sides"


def test_create_product_with_image(client, upload_dir):
    res = client.post(
        "/api/products",
        data=product_form(),
        files={"image": ("suya.png", PNG, "image/png")},
    )
    assert res.status_code == 201
    url = res.json()["product"]["imageUrl"]
    assert url.startswith("http://testserver/uploads/")
    assert url.endswith(".png")
    stored = upload_dir / url.rsplit("/", 1)[1]
    assert stored.read_bytes() == PNG


def test_create_product_rejects_non_image(client):
    res = client.post(
        "/api/products",
        data=product_form(),
        files={"image": ("menu.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Only image files are allowed!"
    assert client.get("/api/products").json() == []


def test_create_product_rejects_large_image(client):
    res = client.post(
        "/api/products",
        data=product_form(),
        files={"image": ("big.png", b"x" * 2048, "image/png")},
    )
    assert res.status_code == 400
    assert res.json()["message"].startswith("File too large")


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"name": "   "}, "Product name is required"),
        ({"description": ""}, "Product description is required"),
        ({"price": "abc"}, "Valid product price is required"),
        ({"price": "inf"}, "Valid product price is required"),
        ({"category": " "}, "Product category is required"),
        ({"name": "", "price": "abc"}, "Product name is required"),
    ],
)
def test_create_product_validation(client, overrides, message):
    res = client.post("/api/products", data=product_form(**overrides))
    assert res.status_code == 400
    assert res.json() == {"success": False, "message": message}


def test_price_round_trips(client):
    client.post("/api/products", data=product_form(price="1999.99"))
    products = client.get("/api/products").json()
    assert products[0]["price"] == 1999.99


def test_list_products_newest_first(client):
    for name in ("Jollof", "Plantain", "Chapman"):
        client.post("/api/products", data=product_form(name=name))
    names = [p["name"] for p in client.get("/api/products").json()]
    assert names == ["Chapman", "Plantain", "Jollof"]


def test_delete_product(client):
    pid = client.post("/api/products", data=product_form()).json()["product"]["id"]
    res = client.delete(f"/api/products/{pid}")
    assert res.status_code == 200
    assert res.json() == {"success": True, "message": "Product deleted successfully"}
    assert client.get("/api/products").json() == []


@pytest.mark.parametrize("product_id", [str(ObjectId()), "not-an-id"])
def test_delete_missing_product(client, product_id):
    res = client.delete(f"/api/products/{product_id}")
    assert res.status_code == 404
    assert res.json()["message"] == "Product not found"


def test_stored_extension_follows_content_type(client, upload_dir):
    res = client.post(
        "/api/products",
        data=product_form(),
        files={"image": ("evil.html", b"<script>alert(1)</script>", "image/png")},
    )
    assert res.status_code == 201
    url = res.json()["product"]["imageUrl"]
    assert url.endswith(".png")
    assert not list(upload_dir.glob("*.html"))


def test_create_product_rejects_unlisted_image_format(client, upload_dir):
    res = client.post(
        "/api/products",
        data=product_form(),
        files={"image": ("logo.svg", b"<svg onload='alert(1)'/>", "image/svg+xml")},
    )
    assert res.status_code == 400
    assert res.json()["message"].startswith("Image format not allowed")
    assert client.get("/api/products").json() == []
    assert not upload_dir.exists() or not any(upload_dir.iterdir())

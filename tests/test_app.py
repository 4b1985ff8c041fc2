import database
from main import app
from storage import CloudinaryImageStorage, LocalImageStorage, build_image_storage, get_image_storage
from config import Settings


def test_unknown_route_lists_available_routes(client):
    res = client.get("/api/nothing-here")
    assert res.status_code == 404
    body = res.json()
    assert body["success"] is False
    assert body["message"] == "Route not found: GET /api/nothing-here"
    assert "POST /api/orders" in body["availableRoutes"]
    assert "PATCH /api/orders/{order_id}" in body["availableRoutes"]
    assert "POST /api/users/register" in body["availableRoutes"]
    assert "DELETE /api/products/{product_id}" in body["availableRoutes"]
    assert "GET /api/health" in body["availableRoutes"]


def test_wrong_method_is_route_not_found(client):
    res = client.put("/api/products")
    assert res.status_code == 404
    assert "availableRoutes" in res.json()


def test_health(client, monkeypatch):
    async def ping():
        return True

    monkeypatch.setattr(database, "ping", ping)
    body = client.get("/api/health").json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"


def test_root_reports_disconnected_database(client, monkeypatch):
    async def ping():
        return False

    monkeypatch.setattr(database, "ping", ping)
    body = client.get("/").json()
    assert body["database"] == "disconnected"
    assert "GET /api/users" in body["endpoints"]


def test_store_error_is_500(client, monkeypatch):
    from errors import StoreError

    async def broken(*args, **kwargs):
        raise StoreError("Failed to fetch product: connection refused")

    monkeypatch.setattr("products.get_documents", broken)
    res = client.get("/api/products")
    assert res.status_code == 500
    assert res.json()["success"] is False


def test_cloudinary_upload(client, monkeypatch):
    calls = {}

    def fake_upload(file, **options):
        calls["data"] = file.read()
        calls["options"] = options
        return {"secure_url": "https://res.cloudinary.com/demo/image/upload/v1/storefront-products/abc.jpg"}

    monkeypatch.setattr("cloudinary.uploader.upload", fake_upload)
    storage = CloudinaryImageStorage("demo", "key", "secret", "storefront-products")
    app.dependency_overrides[get_image_storage] = lambda: storage

    res = client.post(
        "/api/products",
        data={"name": "Wings", "description": "Hot", "price": "7", "category": "Grills"},
        files={"image": ("wings.jpg", b"jpegdata", "image/jpeg")},
    )
    assert res.status_code == 201
    assert res.json()["product"]["imageUrl"].startswith("https://res.cloudinary.com/")
    assert calls["data"] == b"jpegdata"
    assert calls["options"]["folder"] == "storefront-products"
    assert calls["options"]["transformation"][0] == {"width": 800, "height": 600, "crop": "fill"}


def test_build_image_storage_from_settings(tmp_path):
    local = build_image_storage(Settings(IMAGE_STORAGE_BACKEND="local", UPLOAD_DIR=str(tmp_path)))
    assert isinstance(local, LocalImageStorage)
    remote = build_image_storage(
        Settings(
            IMAGE_STORAGE_BACKEND="cloudinary",
            CLOUDINARY_CLOUD_NAME="demo",
            CLOUDINARY_API_KEY="key",
            CLOUDINARY_API_SECRET="secret",
        )
    )
    assert isinstance(remote, CloudinaryImageStorage)

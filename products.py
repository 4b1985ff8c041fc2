import logging
import math
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from database import NEWEST_FIRST, PRODUCTS, create_document, delete_document, get_documents, to_object_id
from errors import InvalidInput, NotFound
from schemas import Message, Product, ProductEnvelope
from storage import ImageStorage, get_image_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


def require_text(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise InvalidInput(message)
    return value.strip()


def parse_price(value: Optional[str]) -> float:
    try:
        price = float(value.strip())
    except (AttributeError, ValueError):
        raise InvalidInput("Valid product price is required")
    if not math.isfinite(price):
        raise InvalidInput("Valid product price is required")
    return price


@router.post("", response_model=ProductEnvelope, status_code=status.HTTP_201_CREATED)
async def create_product(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    storage: ImageStorage = Depends(get_image_storage),
):
    product = {
        "name": require_text(name, "Product name is required"),
        "description": require_text(description, "Product description is required"),
        "price": parse_price(price),
        "category": require_text(category, "Product category is required"),
        "image_url": "",
    }
    if image is not None and image.filename:
        product["image_url"] = await storage.store(image)

    saved = await create_document(PRODUCTS, product)
    logger.info("Product created: %s", saved["id"])
    return {"message": "Product uploaded successfully", "product": saved}


@router.get("", response_model=List[Product])
async def list_products():
    return await get_documents(PRODUCTS, sort=NEWEST_FIRST)


@router.delete("/{product_id}", response_model=Message)
async def delete_product(product_id: str):
    oid = to_object_id(product_id)
    if oid is None or not await delete_document(PRODUCTS, {"_id": oid}):
        raise NotFound("Product not found")
    logger.info("Product deleted: %s", product_id)
    return {"message": "Product deleted successfully"}

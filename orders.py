import logging
import math
from typing import Any, List, Optional

from fastapi import APIRouter, Query, status

from database import NEWEST_FIRST, ORDERS, create_document, get_documents, to_object_id, update_document
from errors import InvalidInput, NotFound
from schemas import Order, OrderCreate, OrderCreated, OrderEnvelope, OrderStatusUpdate
from users import normalize_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])


def to_number(value: Any) -> Optional[float]:
    """Loose numeric parse for client-supplied amounts; None when not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def build_order(payload: OrderCreate) -> dict:
    customer = payload.customer
    if customer is None or not payload.items:
        raise InvalidInput("Invalid order data")
    if not customer.email or not customer.email.strip():
        raise InvalidInput("Customer email is required")
    if not all(v and v.strip() for v in (customer.name, customer.address, customer.phone)):
        raise InvalidInput("Customer name, address and phone are required")

    total = to_number(payload.total)
    if total is None:
        raise InvalidInput("Order total is required")
    if not payload.payment_method:
        raise InvalidInput("Payment method is required")

    # Totals are taken as sent by the checkout page, not recomputed from items
    subtotal = to_number(payload.subtotal)
    delivery_fee = to_number(payload.delivery_fee)

    return {
        "customer": {
            "name": customer.name,
            "address": customer.address,
            "phone": customer.phone,
            "email": normalize_email(customer.email),
        },
        "items": [item.model_dump() for item in payload.items],
        "subtotal": total if subtotal is None else subtotal,
        "delivery_fee": 0 if delivery_fee is None else delivery_fee,
        "delivery_location": payload.delivery_location.model_dump() if payload.delivery_location else None,
        "total": total,
        "payment_method": payload.payment_method,
        "payment_reference": payload.payment_reference or None,
        "payment_status": payload.payment_status or "pending",
        "order_reference": payload.order_reference or None,
        "fulfilled": False,
    }


@router.post("", response_model=OrderCreated, status_code=status.HTTP_201_CREATED)
async def create_order(payload: OrderCreate):
    order = await create_document(ORDERS, build_order(payload))
    logger.info("Order placed: %s (%s)", order["id"], order["customer"]["email"])
    return {"message": "Order placed successfully", "order_id": order["id"], "order": order}


@router.get("", response_model=List[Order])
async def list_orders(email: Optional[str] = Query(None)):
    filt = {}
    if email:
        filt["customer.email"] = normalize_email(email)
    return await get_documents(ORDERS, filt, sort=NEWEST_FIRST)


@router.patch("/{order_id}", response_model=OrderEnvelope)
async def update_order_status(order_id: str, payload: OrderStatusUpdate):
    oid = to_object_id(order_id)
    if oid is None:
        raise InvalidInput("Invalid order ID")
    if payload.fulfilled is None:
        raise InvalidInput("fulfilled must be true or false")

    order = await update_document(ORDERS, {"_id": oid}, {"fulfilled": payload.fulfilled})
    if order is None:
        raise NotFound("Order not found")
    logger.info("Order %s fulfilled=%s", order_id, payload.fulfilled)
    return {"message": "Order status updated successfully", "order": order}

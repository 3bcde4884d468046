"""
Cart -> Order domain service.
Customer checks out the cart: lines are snapshotted into the order with their
price-at-add, totals come from the cart checkout math, the cart is cleared.
Payment is not processed here; payment_status stays "pending".
"""
from __future__ import annotations

import uuid
import logging
from typing import Any, Dict, List, Optional

from .cart import calculate_order_totals, clear_cart, get_cart_items
from .database import NO_ID, utc_now
from .errors import OrderNotFound, Unauthenticated
from .models import ItemKind, Order, OrderItem, OrderStatus, ShippingAddress

logger = logging.getLogger(__name__)

ORDER_STATUSES = tuple(s.value for s in OrderStatus)

# cart item_type -> order item type
ORDER_ITEM_TYPES = {
    ItemKind.PRODUCT.value: "product",
    ItemKind.PREBUILT.value: "prebuilt",
    ItemKind.CUSTOM_BUILD.value: "custom",
}


def _require_status(value: str, allowed_set: tuple, field_name: str = "status") -> None:
    """Assert value is in allowed_set (e.g. ORDER_STATUSES); ValueError otherwise."""
    if value not in allowed_set:
        raise ValueError("%s must be one of %s, got %r" % (field_name, allowed_set, value))


def generate_order_number() -> str:
    """PC-YYYYMMDD-XXXXXX"""
    return "PC-%s-%s" % (utc_now().strftime("%Y%m%d"), uuid.uuid4().hex[:6].upper())


def _snapshot_items(cart_items: List[Dict[str, Any]]) -> List[OrderItem]:
    snapshot = []
    for item in cart_items:
        details = item.get("item_details") or {}
        snapshot.append(OrderItem(
            type=ORDER_ITEM_TYPES[item["item_type"]],
            item_id=item["item_id"],
            name=details.get("name") or "Unknown item",
            quantity=item["quantity"],
            price=item["price_at_time"],
        ))
    return snapshot


def create_order(
    db,
    user_id: Optional[str],
    shipping_address: ShippingAddress,
    payment_method: str,
) -> Dict[str, Any]:
    """Create order with status pending from the user's cart, then clear the cart."""
    if not user_id:
        raise Unauthenticated()
    cart_items = get_cart_items(db, user_id)
    if not cart_items:
        raise ValueError("cart is empty")

    items = _snapshot_items(cart_items)
    subtotal = sum(i.price * i.quantity for i in items)
    totals = calculate_order_totals(subtotal)

    order = Order(
        order_number=generate_order_number(),
        user_id=user_id,
        items=items,
        subtotal=totals["subtotal"],
        tax=totals["tax"],
        shipping=totals["shipping"],
        total=totals["total"],
        shipping_address=shipping_address,
        payment_method=payment_method,
    ).model_dump()
    db.orders.insert_one(dict(order))
    clear_cart(db, user_id)

    logger.info(f"Order {order['order_number']} created for user {user_id}: total={order['total']}")
    return order


def list_orders(
    db,
    user_id: Optional[str],
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
) -> Dict[str, Any]:
    """Order history, newest first. No user -> empty page."""
    if not user_id:
        return {"orders": [], "total": 0, "skip": skip, "limit": limit, "has_more": False}
    query: Dict[str, Any] = {"user_id": user_id}
    if status:
        _require_status(status, ORDER_STATUSES)
        query["status"] = status
    orders = list(db.orders.find(query, NO_ID).sort("created_at", -1).skip(skip).limit(limit))
    total = db.orders.count_documents(query)
    return {
        "orders": orders,
        "total": total,
        "skip": skip,
        "limit": limit,
        "has_more": skip + len(orders) < total,
    }


def get_order(db, user_id: Optional[str], order_id: str) -> Dict[str, Any]:
    if not user_id:
        raise Unauthenticated()
    order = db.orders.find_one({"id": order_id}, NO_ID)
    if not order or order.get("user_id") != user_id:
        raise OrderNotFound(order_id)
    return order


def update_order_status(db, order_id: str, status: str) -> Dict[str, Any]:
    """Set order status; back-office operation, no ownership check."""
    _require_status(status, ORDER_STATUSES)
    result = db.orders.update_one(
        {"id": order_id},
        {"$set": {"status": status, "updated_at": utc_now()}},
    )
    if result.matched_count == 0:
        raise OrderNotFound(order_id)
    logger.info(f"Order {order_id} status -> {status}")
    return db.orders.find_one({"id": order_id}, NO_ID)

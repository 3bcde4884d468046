"""
Cart Routes Module - Корзина и итоги

Пользователь берётся из bearer-токена; чтение без пользователя отдаёт
пустую корзину, запись - 401.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..cart import (
    add_to_cart, update_quantity, remove_from_cart, clear_cart,
    get_cart_summary, get_cart_totals, calculate_order_totals
)
from ..errors import CartItemNotFound
from ..identity import get_current_user_id, require_user_id
from ..models import AddToCartRequest, CartTotals, UpdateQuantityRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cart", tags=["Cart"])


# === DB Access ===

_db = None

def set_db(db):
    """Устанавливает подключение к БД"""
    global _db
    _db = db

def get_db():
    """Получает подключение к БД"""
    if _db is None:
        raise RuntimeError("Database not initialized. Call set_db() first.")
    return _db


# === Endpoints ===

@router.get("", summary="Корзина с деталями позиций")
async def get_cart(user_id: Optional[str] = Depends(get_current_user_id)):
    return get_cart_summary(get_db(), user_id)


@router.get("/totals", summary="Итоги корзины", response_model=CartTotals)
async def get_totals(user_id: Optional[str] = Depends(get_current_user_id)):
    totals = get_cart_totals(get_db(), user_id)
    return CartTotals(item_count=totals['item_count'], **calculate_order_totals(totals['subtotal']))


@router.post("/items", summary="Добавить в корзину")
async def add_item(request: AddToCartRequest, user_id: str = Depends(require_user_id)):
    try:
        return add_to_cart(get_db(), user_id, request.item_ref(), request.quantity, request.price)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/items/{cart_item_id}", summary="Обновить количество")
async def update_item(
    cart_item_id: str,
    request: UpdateQuantityRequest,
    user_id: str = Depends(require_user_id)
):
    try:
        return update_quantity(get_db(), user_id, cart_item_id, request.quantity)
    except CartItemNotFound:
        raise HTTPException(status_code=404, detail="Cart item not found")


@router.delete("/items/{cart_item_id}", summary="Удалить из корзины")
async def delete_item(cart_item_id: str, user_id: str = Depends(require_user_id)):
    try:
        return remove_from_cart(get_db(), user_id, cart_item_id)
    except CartItemNotFound:
        raise HTTPException(status_code=404, detail="Cart item not found")


@router.delete("", summary="Очистить корзину")
async def delete_cart(user_id: str = Depends(require_user_id)):
    return clear_cart(get_db(), user_id)

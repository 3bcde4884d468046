"""
Orders Routes Module - Оформление и история заказов
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..errors import OrderNotFound
from ..identity import require_user_id
from ..models import CheckoutRequest
from ..orders_service import create_order, list_orders, get_order

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


# === DB Access ===

_db = None

def set_db(db):
    global _db
    _db = db

def get_db():
    if _db is None:
        raise RuntimeError("Database not initialized")
    return _db


# === Endpoints ===

@router.post("", summary="Оформить заказ из корзины")
async def checkout(request: CheckoutRequest, user_id: str = Depends(require_user_id)):
    try:
        return create_order(get_db(), user_id, request.shipping_address, request.payment_method)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", summary="Получить историю заказов")
async def get_orders(
    user_id: str = Depends(require_user_id),
    limit: int = Query(50, ge=1, le=100),
    skip: int = Query(0, ge=0),
    status: Optional[str] = Query(None, description="Фильтр по статусу")
):
    """
    Получить список заказов пользователя.

    Статусы: pending, processing, building, testing, shipped, delivered, cancelled
    """
    try:
        return list_orders(get_db(), user_id, status=status, skip=skip, limit=limit)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{order_id}", summary="Заказ по ID")
async def get_order_details(order_id: str, user_id: str = Depends(require_user_id)):
    try:
        return get_order(get_db(), user_id, order_id)
    except OrderNotFound:
        raise HTTPException(status_code=404, detail="Order not found")

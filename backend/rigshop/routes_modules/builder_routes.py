"""
Builder Routes Module - Конфигуратор пользовательских сборок

Клиент присылает {slot: product_id}; сервер сам подгружает товары,
цены и характеристики берутся из каталога, а не от клиента.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..configurator import (
    resolve_selection, evaluate_build, save_custom_build,
    list_custom_builds, add_build_to_cart
)
from ..identity import get_current_user_id, require_user_id
from ..models import AddBuildToCartRequest, BuildRequest, SaveBuildRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/builder", tags=["Builder"])


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


def _resolve(request: BuildRequest):
    try:
        return resolve_selection(get_db(), request.components)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# === Endpoints ===

@router.post("/evaluate", summary="Цена и совместимость сборки")
async def evaluate(request: BuildRequest):
    return evaluate_build(_resolve(request))


@router.post("/builds", summary="Сохранить сборку")
async def save_build(request: SaveBuildRequest, user_id: str = Depends(require_user_id)):
    selection = _resolve(request)
    return save_custom_build(get_db(), user_id, request.name, selection, is_public=request.is_public)


@router.get("/builds", summary="Сборки пользователя")
async def get_builds(user_id: Optional[str] = Depends(get_current_user_id)):
    builds = list_custom_builds(get_db(), user_id)
    return {'builds': builds, 'count': len(builds)}


@router.post("/add-to-cart", summary="Отправить сборку в корзину")
async def submit_build(request: AddBuildToCartRequest, user_id: str = Depends(require_user_id)):
    """Закрытые ворота (неполная / несовместимая сборка) - это 200 со статусом, не ошибка"""
    selection = _resolve(request)
    return add_build_to_cart(
        get_db(), user_id, selection,
        as_custom_build=request.as_custom_build,
        name=request.name,
    )

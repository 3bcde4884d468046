"""
Catalog Routes Module - Категории, товары, поиск, готовые сборки
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from ..catalog import (
    list_categories, get_products_by_category, get_featured_products,
    get_product, search_products, get_prebuilt_configs, get_prebuilt_config
)
from ..models import ProductType, Tier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catalog"])


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

@router.get("/categories", summary="Все категории")
async def get_categories():
    return list_categories(get_db())


@router.get("/products", summary="Товары по категории")
async def get_products(
    category: Optional[str] = Query(None, description="Slug категории"),
    type: Optional[ProductType] = Query(None, description="component | prebuilt"),
    limit: Optional[int] = Query(None, ge=1, le=200),
):
    return get_products_by_category(
        get_db(),
        category_slug=category,
        product_type=type.value if type else None,
        limit=limit,
    )


@router.get("/products/featured", summary="Рекомендуемые товары")
async def get_featured():
    return get_featured_products(get_db())


@router.get("/products/search", summary="Поиск по названию")
async def search(
    q: str = Query("", description="Поисковый запрос"),
    category_id: Optional[str] = Query(None),
    type: Optional[ProductType] = Query(None),
):
    return search_products(
        get_db(), q,
        category_id=category_id,
        product_type=type.value if type else None,
    )


@router.get("/products/{product_id}", summary="Карточка товара")
async def get_product_card(product_id: str):
    product = get_product(get_db(), product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/prebuilt", summary="Готовые сборки")
async def get_prebuilt(
    tier: Optional[Tier] = Query(None, description="entry | mid | pro | ultra"),
    featured: Optional[bool] = Query(None),
):
    return get_prebuilt_configs(get_db(), tier=tier.value if tier else None, featured=featured)


@router.get("/prebuilt/{config_id}", summary="Готовая сборка с компонентами")
async def get_prebuilt_card(config_id: str):
    config = get_prebuilt_config(get_db(), config_id)
    if not config:
        raise HTTPException(status_code=404, detail="Prebuilt config not found")
    return config

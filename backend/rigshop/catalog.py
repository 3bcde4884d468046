"""
RigShop - Catalog Logic

Логика каталога (тонкая обёртка над индексами Mongo):
- Категории и товары по категории / типу
- Поиск по названию (до 20 результатов)
- Готовые сборки с подгрузкой компонентов
"""

import re
import logging
from typing import Any, Dict, List, Optional

from pymongo.database import Database

from .configurator import SLOTS
from .database import NO_ID, find_by_id, find_many_by_ids
from .models import SEARCH_RESULTS_LIMIT, FEATURED_PRODUCTS_LIMIT

logger = logging.getLogger(__name__)


def list_categories(db: Database) -> List[Dict[str, Any]]:
    return list(db.categories.find({}, NO_ID))


def get_category_by_slug(db: Database, slug: str) -> Optional[Dict[str, Any]]:
    return db.categories.find_one({'slug': slug}, NO_ID)


def get_products_by_category(
    db: Database,
    category_slug: Optional[str] = None,
    product_type: Optional[str] = None,
    limit: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    Товары категории (по slug) с фильтром по типу и обрезкой до limit.
    Неизвестный slug -> пустой список; без slug -> все товары.
    """
    query: Dict[str, Any] = {}
    if category_slug:
        category = get_category_by_slug(db, category_slug)
        if not category:
            return []
        query['category_id'] = category['id']

    products = list(db.products.find(query, NO_ID))

    if product_type:
        products = [p for p in products if p.get('type') == product_type]

    if limit:
        products = products[:limit]

    return products


def get_featured_products(db: Database, limit: int = FEATURED_PRODUCTS_LIMIT) -> List[Dict[str, Any]]:
    return list(db.products.find({'featured': True}, NO_ID).limit(limit))


def get_product(db: Database, product_id: str) -> Optional[Dict[str, Any]]:
    return find_by_id(db, 'products', product_id)


def search_products(
    db: Database,
    term: str,
    category_id: Optional[str] = None,
    product_type: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Поиск по названию товара.

    - Регистронезависимое вхождение (термин экранируется)
    - category_id фильтруется в запросе, тип - после выборки
    - Не более SEARCH_RESULTS_LIMIT результатов до фильтра по типу
    """
    term = (term or '').strip()
    if not term:
        return []

    query: Dict[str, Any] = {'name': {'$regex': re.escape(term), '$options': 'i'}}
    if category_id:
        query['category_id'] = category_id

    results = list(db.products.find(query, NO_ID).limit(SEARCH_RESULTS_LIMIT))

    if product_type:
        results = [p for p in results if p.get('type') == product_type]

    return results


# === PREBUILT CONFIGS ===

def populate_components(db: Database, configs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Добавляет populated_components ко всем конфигам.

    Все компоненты всех конфигов грузятся одним запросом $in;
    отсутствующий cooling или висячая ссылка -> None.
    """
    component_ids = [
        (config.get('components') or {}).get(slot)
        for config in configs
        for slot in SLOTS
    ]
    products = find_many_by_ids(db, 'products', component_ids)

    for config in configs:
        components = config.get('components') or {}
        populated = {}
        for slot in SLOTS:
            ref = components.get(slot)
            populated[slot] = products.get(ref) if ref else None
            if ref and populated[slot] is None:
                logger.warning(f"Prebuilt {config.get('id')} references missing {slot} product {ref}")
        config['populated_components'] = populated

    return configs


def get_prebuilt_configs(
    db: Database,
    tier: Optional[str] = None,
    featured: Optional[bool] = None
) -> List[Dict[str, Any]]:
    """Фильтр: сначала tier, иначе featured, иначе все"""
    if tier:
        query = {'category': tier}
    elif featured is not None:
        query = {'featured': featured}
    else:
        query = {}

    configs = list(db.prebuilt_configs.find(query, NO_ID))
    return populate_components(db, configs)


def get_prebuilt_config(db: Database, config_id: str) -> Optional[Dict[str, Any]]:
    config = find_by_id(db, 'prebuilt_configs', config_id)
    if not config:
        return None
    return populate_components(db, [config])[0]

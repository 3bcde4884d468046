"""
RigShop - Cart Logic

Логика корзины:
- Add-to-cart со слиянием одинаковых позиций (цена первого добавления сохраняется)
- Изменение количества (<= 0 удаляет позицию)
- Итоги: subtotal, item_count, налог 8%, доставка (бесплатно свыше $1000)
- Join позиций с товаром / готовой сборкой / пользовательской сборкой
"""

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from .database import NO_ID, find_many_by_ids, utc_now
from .errors import CartItemNotFound, Unauthenticated
from .models import (
    CartItem, ItemKind, ItemRef,
    TAX_RATE, FREE_SHIPPING_THRESHOLD, FLAT_SHIPPING_FEE,
)

logger = logging.getLogger(__name__)

# Коллекция, в которой живёт объект каждой разновидности ссылки
DETAIL_COLLECTIONS = {
    ItemKind.PRODUCT.value: 'products',
    ItemKind.PREBUILT.value: 'prebuilt_configs',
    ItemKind.CUSTOM_BUILD.value: 'custom_builds',
}


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise Unauthenticated()
    return user_id


def _get_owned_item(db: Database, user_id: str, cart_item_id: str) -> Dict[str, Any]:
    """Позиция существует и принадлежит пользователю, иначе CartItemNotFound"""
    item = db.cart_items.find_one({'id': cart_item_id}, NO_ID)
    if not item or item.get('user_id') != user_id:
        raise CartItemNotFound(cart_item_id)
    return item


def get_user_cart_items(db: Database, user_id: str) -> List[Dict[str, Any]]:
    """Все позиции пользователя без join"""
    return list(db.cart_items.find({'user_id': user_id}, NO_ID))


# === CHECKOUT MATH ===

def calculate_tax(subtotal: float) -> float:
    return round(subtotal * TAX_RATE, 2)


def calculate_shipping(subtotal: float) -> float:
    return 0 if subtotal > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE


def calculate_order_totals(subtotal: float) -> Dict[str, float]:
    """
    Итоговая стоимость заказа от subtotal.

    total = subtotal + tax + shipping
    """
    tax = calculate_tax(subtotal)
    shipping = calculate_shipping(subtotal)
    return {
        'subtotal': subtotal,
        'tax': tax,
        'shipping': shipping,
        'total': round(subtotal + tax + shipping, 2),
    }


# === MUTATIONS ===

def _upsert_line(db: Database, match: Dict[str, Any], quantity: int, price: float):
    """Один атомарный upsert по ключу (user_id, item_type, item_id)"""
    line = CartItem(quantity=quantity, price_at_time=price, **match).model_dump()
    now = line.pop('updated_at')
    for field in ('quantity', *match):
        line.pop(field)
    return db.cart_items.update_one(
        match,
        {
            '$inc': {'quantity': quantity},
            '$set': {'updated_at': now},
            '$setOnInsert': line,
        },
        upsert=True
    )


def add_to_cart(
    db: Database,
    user_id: Optional[str],
    item_ref: ItemRef,
    quantity: int,
    price: float
) -> Dict[str, Any]:
    """
    Добавление в корзину.

    Один upsert: существующая позиция получает $inc количества, цена НЕ
    меняется (price-at-add); новая позиция создаётся со снапшотом цены
    ($setOnInsert). Уникальный индекс (user_id, item_type, item_id) не даёт
    параллельным добавлениям создать две позиции: проигравший upsert
    получает DuplicateKeyError и повторяется как обычный $inc.

    Returns:
        {'status', 'action': created|updated, 'cart_item'}
    """
    user_id = _require_user(user_id)
    if quantity <= 0:
        raise ValueError("quantity must be > 0")

    match = {
        'user_id': user_id,
        'item_type': item_ref.kind.value,
        'item_id': item_ref.id,
    }
    try:
        result = _upsert_line(db, match, quantity, price)
    except DuplicateKeyError:
        logger.info(f"Concurrent add for user {user_id}: {item_ref.kind.value}={item_ref.id}, retrying as update")
        result = _upsert_line(db, match, quantity, price)

    action = 'created' if result.upserted_id is not None else 'updated'
    cart_item = db.cart_items.find_one(match, NO_ID)

    logger.info(f"Cart item {action} for user {user_id}: {item_ref.kind.value}={item_ref.id} qty+{quantity}")

    return {
        'status': 'ok',
        'action': action,
        'cart_item': cart_item,
    }


def update_quantity(db: Database, user_id: Optional[str], cart_item_id: str, quantity: int) -> Dict[str, Any]:
    """Новое количество; <= 0 удаляет позицию"""
    user_id = _require_user(user_id)
    _get_owned_item(db, user_id, cart_item_id)

    if quantity <= 0:
        db.cart_items.delete_one({'id': cart_item_id})
        logger.info(f"Cart item {cart_item_id} deleted by zero quantity for user {user_id}")
        return {'status': 'ok', 'action': 'deleted'}

    db.cart_items.update_one(
        {'id': cart_item_id},
        {'$set': {'quantity': quantity, 'updated_at': utc_now()}}
    )
    return {'status': 'ok', 'action': 'updated', 'quantity': quantity}


def remove_from_cart(db: Database, user_id: Optional[str], cart_item_id: str) -> Dict[str, Any]:
    """Удаляет позицию из корзины"""
    user_id = _require_user(user_id)
    _get_owned_item(db, user_id, cart_item_id)
    db.cart_items.delete_one({'id': cart_item_id})
    return {'status': 'ok'}


def clear_cart(db: Database, user_id: Optional[str]) -> Dict[str, Any]:
    """Очищает корзину пользователя"""
    user_id = _require_user(user_id)
    result = db.cart_items.delete_many({'user_id': user_id})
    logger.info(f"Cleared {result.deleted_count} cart items for user {user_id}")
    return {'status': 'ok', 'deleted_count': result.deleted_count}


# === QUERIES ===

def get_cart_totals(db: Database, user_id: Optional[str]) -> Dict[str, Any]:
    """
    subtotal = Σ price_at_time * quantity, item_count = Σ quantity.
    Без пользователя - нули, а не ошибка.
    """
    if not user_id:
        return {'subtotal': 0, 'item_count': 0}

    items = get_user_cart_items(db, user_id)
    subtotal = sum(item['price_at_time'] * item['quantity'] for item in items)
    item_count = sum(item['quantity'] for item in items)
    return {'subtotal': subtotal, 'item_count': item_count}


def get_cart_items(db: Database, user_id: Optional[str]) -> List[Dict[str, Any]]:
    """
    Позиции корзины с деталями (item_details).

    Детали грузятся одним запросом $in на коллекцию;
    висячая ссылка даёт item_details = None.
    """
    if not user_id:
        return []

    items = get_user_cart_items(db, user_id)

    ids_by_type = defaultdict(list)
    for item in items:
        ids_by_type[item['item_type']].append(item['item_id'])

    details_by_type = {
        item_type: find_many_by_ids(db, DETAIL_COLLECTIONS[item_type], ids)
        for item_type, ids in ids_by_type.items()
        if item_type in DETAIL_COLLECTIONS
    }

    for item in items:
        details = details_by_type.get(item['item_type'], {}).get(item['item_id'])
        if details is None:
            logger.warning(f"Dangling cart reference {item['item_type']}={item['item_id']} in item {item['id']}")
        item['item_details'] = details

    return items


def get_cart_summary(db: Database, user_id: Optional[str]) -> Dict[str, Any]:
    """Сводка для страницы корзины: позиции + итоги к оплате из того же чтения"""
    items = get_cart_items(db, user_id)
    subtotal = sum(item['price_at_time'] * item['quantity'] for item in items)
    return {
        'items': items,
        'item_count': sum(item['quantity'] for item in items),
        **calculate_order_totals(subtotal),
    }

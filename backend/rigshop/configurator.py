"""
RigShop - Custom Build Configurator

Конфигуратор пользовательской сборки:
- Слоты: cpu, gpu, motherboard, ram, storage, psu, case, cooling
- Цена сборки = сумма цен выбранных компонентов
- Проверки совместимости (сокет CPU/материнской платы, запас мощности БП)
- Ворота отправки в корзину: сборка полная И нет проблем совместимости

Неполная или несовместимая сборка - это данные для UI, а не исключения.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from pymongo.database import Database

from .cart import add_to_cart
from .database import NO_ID, find_by_id, find_many_by_ids
from .errors import Unauthenticated
from .models import BuildEvaluation, CustomBuild, ItemRef, PSU_HEADROOM_WATTS

logger = logging.getLogger(__name__)

SLOTS = ("cpu", "gpu", "motherboard", "ram", "storage", "psu", "case", "cooling")
OPTIONAL_SLOTS = ("cooling",)
REQUIRED_SLOTS = tuple(slot for slot in SLOTS if slot not in OPTIONAL_SLOTS)

SOCKET_MISMATCH = "CPU and Motherboard socket mismatch"
PSU_INSUFFICIENT = "Power supply may be insufficient for selected GPU"

Selection = Dict[str, Optional[Dict[str, Any]]]


def _check_slot(slot: str) -> None:
    if slot not in SLOTS:
        raise ValueError("slot must be one of %s, got %r" % (SLOTS, slot))


def _spec(product: Mapping[str, Any], key: str) -> Any:
    return (product.get('specifications') or {}).get(key)


def empty_selection() -> Selection:
    return {slot: None for slot in SLOTS}


def select_component(selection: Mapping[str, Any], slot: str, product: Optional[Dict[str, Any]]) -> Selection:
    """Выбор для слота перезаписывает прежний (last-write-wins). None очищает слот."""
    _check_slot(slot)
    updated = empty_selection()
    updated.update(selection)
    updated[slot] = product
    return updated


def compute_total_price(selection: Mapping[str, Any]) -> float:
    return sum(product.get('price', 0) for product in selection.values() if product)


def check_compatibility(selection: Mapping[str, Any]) -> List[str]:
    """
    Список проблем совместимости; правила независимы друг от друга.

    1. CPU и материнская плата: сокеты должны совпадать.
       Отсутствующий сокет с любой стороны считается несовпадением.
    2. БП и GPU: psu.power >= gpu.power + PSU_HEADROOM_WATTS.
       Неизвестная мощность считается 0.
    """
    issues = []

    cpu = selection.get('cpu')
    motherboard = selection.get('motherboard')
    if cpu and motherboard:
        cpu_socket = _spec(cpu, 'socket')
        board_socket = _spec(motherboard, 'socket')
        if cpu_socket is None or board_socket is None or cpu_socket != board_socket:
            issues.append(SOCKET_MISMATCH)

    psu = selection.get('psu')
    gpu = selection.get('gpu')
    if psu and gpu:
        gpu_power = _spec(gpu, 'power') or 0
        psu_power = _spec(psu, 'power') or 0
        if psu_power < gpu_power + PSU_HEADROOM_WATTS:
            issues.append(PSU_INSUFFICIENT)

    return issues


def missing_slots(selection: Mapping[str, Any]) -> List[str]:
    return [slot for slot in REQUIRED_SLOTS if not selection.get(slot)]


def is_complete(selection: Mapping[str, Any]) -> bool:
    """Все обязательные слоты заполнены; cooling не учитывается"""
    return not missing_slots(selection)


def evaluate_build(selection: Mapping[str, Any]) -> BuildEvaluation:
    """Цена, проблемы, полнота и разрешение на отправку одним объектом"""
    issues = check_compatibility(selection)
    missing = missing_slots(selection)
    return BuildEvaluation(
        total_price=compute_total_price(selection),
        issues=issues,
        is_complete=not missing,
        missing_slots=missing,
        can_submit=not missing and not issues,
        components={slot: selection.get(slot) for slot in SLOTS},
    )


def resolve_selection(db: Database, component_ids: Mapping[str, Optional[str]]) -> Selection:
    """
    {slot: product_id} -> {slot: product document}

    Неизвестный product_id оставляет слот пустым.
    """
    for slot in component_ids:
        _check_slot(slot)

    products = find_many_by_ids(db, 'products', component_ids.values())
    selection = empty_selection()
    for slot, product_id in component_ids.items():
        selection[slot] = products.get(product_id) if product_id else None
    return selection


# === CUSTOM BUILDS ===

def save_custom_build(
    db: Database,
    user_id: Optional[str],
    name: str,
    selection: Mapping[str, Any],
    is_public: bool = False
) -> Dict[str, Any]:
    """Сохраняет сборку со снапшотом цены и проблем совместимости"""
    if not user_id:
        raise Unauthenticated()

    build = CustomBuild(
        user_id=user_id,
        name=name,
        components={slot: (selection.get(slot) or {}).get('id') for slot in SLOTS},
        total_price=compute_total_price(selection),
        is_public=is_public,
        compatibility_issues=check_compatibility(selection),
    ).model_dump()
    db.custom_builds.insert_one(dict(build))

    logger.info(f"Custom build '{name}' saved for user {user_id}: {build['id']}")
    return build


def list_custom_builds(db: Database, user_id: Optional[str]) -> List[Dict[str, Any]]:
    if not user_id:
        return []
    return list(db.custom_builds.find({'user_id': user_id}, NO_ID).sort('created_at', -1))


def get_custom_build(db: Database, build_id: str) -> Optional[Dict[str, Any]]:
    return find_by_id(db, 'custom_builds', build_id)


def add_build_to_cart(
    db: Database,
    user_id: Optional[str],
    selection: Mapping[str, Any],
    as_custom_build: bool = False,
    name: Optional[str] = None
) -> Dict[str, Any]:
    """
    Отправка сборки в корзину через ворота evaluate_build.

    Если ворота закрыты, корзина не трогается, возвращается статус
    incomplete / incompatible. Иначе:
    - по умолчанию каждый компонент добавляется отдельной позицией по текущей цене
    - as_custom_build=True: сборка сохраняется и добавляется одной позицией

    Компоненты добавляются отдельными вызовами add_to_cart без транзакции:
    если один из них падает, уже добавленные позиции остаются в корзине.
    """
    if not user_id:
        raise Unauthenticated()

    evaluation = evaluate_build(selection)
    if not evaluation.is_complete:
        logger.info(f"Build submission blocked for user {user_id}: missing {evaluation.missing_slots}")
        return {
            'status': 'incomplete',
            'missing_slots': evaluation.missing_slots,
            'issues': evaluation.issues,
            'cart_item_ids': [],
        }
    if evaluation.issues:
        logger.info(f"Build submission blocked for user {user_id}: {evaluation.issues}")
        return {
            'status': 'incompatible',
            'missing_slots': [],
            'issues': evaluation.issues,
            'cart_item_ids': [],
        }

    cart_item_ids = []
    build_id = None
    if as_custom_build:
        build = save_custom_build(db, user_id, name or "Custom Build", selection)
        build_id = build['id']
        result = add_to_cart(db, user_id, ItemRef.custom_build(build_id), 1, build['total_price'])
        cart_item_ids.append(result['cart_item']['id'])
    else:
        for slot in SLOTS:
            component = selection.get(slot)
            if not component:
                continue
            result = add_to_cart(db, user_id, ItemRef.product(component['id']), 1, component['price'])
            cart_item_ids.append(result['cart_item']['id'])

    return {
        'status': 'ok',
        'missing_slots': [],
        'issues': [],
        'cart_item_ids': cart_item_ids,
        'custom_build_id': build_id,
        'total_price': evaluation.total_price,
    }

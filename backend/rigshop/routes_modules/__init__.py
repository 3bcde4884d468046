"""
RigShop Routes Modules

Модульная структура роутов:
- catalog_routes: Категории, товары, готовые сборки
- builder_routes: Конфигуратор
- cart_routes: Корзина
- orders_routes: Заказы

Использование:
    from rigshop.routes_modules import init_all_routers, all_routers

    init_all_routers(db)
    for router in all_routers:
        api_router.include_router(router)
"""

from .catalog_routes import router as catalog_router, set_db as set_catalog_db
from .builder_routes import router as builder_router, set_db as set_builder_db
from .cart_routes import router as cart_router, set_db as set_cart_db
from .orders_routes import router as orders_router, set_db as set_orders_db

all_routers = (catalog_router, builder_router, cart_router, orders_router)


def init_all_routers(db):
    """Инициализирует все модульные роутеры с подключением к БД"""
    set_catalog_db(db)
    set_builder_db(db)
    set_cart_db(db)
    set_orders_db(db)


__all__ = [
    'catalog_router',
    'builder_router',
    'cart_router',
    'orders_router',
    'all_routers',
    'init_all_routers',
]

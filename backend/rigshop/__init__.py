"""
RigShop - PC components & pre-built storefront backend

Модули:
- models.py - Pydantic модели и бизнес-константы
- configurator.py - Конфигуратор сборок: цена, совместимость, сохранение
- cart.py - Корзина: слияние позиций, итоги, налог и доставка
- catalog.py - Каталог: категории, поиск, готовые сборки
- orders_service.py - Оформление и история заказов
- seed.py - Демонстрационный каталог
"""

__version__ = "1.0.0"

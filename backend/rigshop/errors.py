"""
Исключения домена.

Условия конфигуратора (неполная сборка, несовместимость) - это данные,
а не ошибки, поэтому здесь их нет.
"""


class RigShopError(Exception):
    """Base class for storefront errors"""


class Unauthenticated(RigShopError):
    """Write operation without a resolved user"""

    def __init__(self, message: str = "Must be logged in"):
        super().__init__(message)


class NotFoundError(RigShopError, LookupError):
    """Record is absent or belongs to another user"""


class CartItemNotFound(NotFoundError):
    def __init__(self, cart_item_id: str):
        super().__init__(f"Cart item not found: {cart_item_id}")
        self.cart_item_id = cart_item_id


class OrderNotFound(NotFoundError):
    def __init__(self, order_id: str):
        super().__init__(f"Order not found: {order_id}")
        self.order_id = order_id

"""
RigShop - Data Models

Сущности:
- Category, Product, PrebuiltConfig (каталог, управляется извне)
- CustomBuild (сохранённая пользовательская сборка)
- ItemRef / CartItem (позиция корзины)
- Order (снапшот корзины при оформлении)
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# === ENUMS ===

class ProductType(str, Enum):
    COMPONENT = "component"
    PREBUILT = "prebuilt"


class Tier(str, Enum):
    ENTRY = "entry"
    MID = "mid"
    PRO = "pro"
    ULTRA = "ultra"


class ItemKind(str, Enum):
    PRODUCT = "product"
    PREBUILT = "prebuilt"
    CUSTOM_BUILD = "custom_build"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    BUILDING = "building"
    TESTING = "testing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


# === GLOBAL PARAMETERS ===

PSU_HEADROOM_WATTS = 200  # запас мощности БП сверх потребления GPU
TAX_RATE = 0.08
FREE_SHIPPING_THRESHOLD = 1000  # доставка бесплатна строго свыше порога
FLAT_SHIPPING_FEE = 50
SEARCH_RESULTS_LIMIT = 20
FEATURED_PRODUCTS_LIMIT = 8


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


# === CATALOG ===

class Category(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    slug: str = Field(..., description="URL-friendly id")
    description: str = ""


class Specifications(BaseModel):
    """Мешок характеристик: известные поля + произвольные (socket, tdp, ...)"""
    model_config = ConfigDict(extra="allow")

    brand: Optional[str] = None
    model: Optional[str] = None
    performance: Optional[str] = None
    power: Optional[float] = None
    compatibility: Optional[List[str]] = None


class Product(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    id: str = Field(default_factory=_new_id)
    name: str
    slug: str
    category_id: str
    type: ProductType = ProductType.COMPONENT
    price: float = Field(..., ge=0)
    original_price: Optional[float] = None
    description: str = ""
    specifications: Specifications = Field(default_factory=Specifications)
    images: List[str] = Field(default_factory=list)
    in_stock: bool = True
    stock_count: int = Field(0, ge=0)
    featured: bool = False
    performance_score: Optional[float] = None


class PrebuiltComponents(BaseModel):
    """Фиксированный набор ссылок на Product; cooling опционален"""
    cpu: str
    gpu: str
    motherboard: str
    ram: str
    storage: str
    psu: str
    case: str
    cooling: Optional[str] = None


class PerformanceScores(BaseModel):
    gaming: float
    productivity: float
    streaming: float


class PrebuiltConfig(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    id: str = Field(default_factory=_new_id)
    name: str
    slug: str
    category: Tier
    price: float = Field(..., ge=0)
    original_price: Optional[float] = None
    description: str = ""
    target_use: List[str] = Field(default_factory=list)
    components: PrebuiltComponents
    performance_scores: PerformanceScores
    images: List[str] = Field(default_factory=list)
    featured: bool = False
    in_stock: bool = True


# === CART ===

class ItemRef(BaseModel):
    """
    Ссылка позиции корзины: ровно одно из product / prebuilt / custom_build.

    Взаимоисключение проверяется при создании, а не по соглашению.
    """
    model_config = ConfigDict(frozen=True)

    kind: ItemKind
    id: str = Field(..., min_length=1)

    @classmethod
    def from_fields(
        cls,
        product_id: Optional[str] = None,
        prebuilt_id: Optional[str] = None,
        custom_build_id: Optional[str] = None,
    ) -> "ItemRef":
        candidates = [
            (ItemKind.PRODUCT, product_id),
            (ItemKind.PREBUILT, prebuilt_id),
            (ItemKind.CUSTOM_BUILD, custom_build_id),
        ]
        present = [(kind, value) for kind, value in candidates if value]
        if len(present) != 1:
            raise ValueError(
                "exactly one of product_id, prebuilt_id, custom_build_id must be set, "
                f"got {len(present)}"
            )
        kind, value = present[0]
        return cls(kind=kind, id=value)

    @classmethod
    def product(cls, product_id: str) -> "ItemRef":
        return cls(kind=ItemKind.PRODUCT, id=product_id)

    @classmethod
    def prebuilt(cls, prebuilt_id: str) -> "ItemRef":
        return cls(kind=ItemKind.PREBUILT, id=prebuilt_id)

    @classmethod
    def custom_build(cls, build_id: str) -> "ItemRef":
        return cls(kind=ItemKind.CUSTOM_BUILD, id=build_id)


class CartItem(BaseModel):
    """Модель для MongoDB (без _id)"""
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    id: str = Field(default_factory=_new_id)
    user_id: str
    item_type: ItemKind
    item_id: str
    quantity: int = Field(..., ge=1)
    price_at_time: float
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


# === CUSTOM BUILD ===

class CustomBuild(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    name: str
    components: Dict[str, Optional[str]]
    total_price: float
    is_public: bool = False
    compatibility_issues: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)


# === ORDERS ===

class ShippingAddress(BaseModel):
    name: str
    address: str
    city: str
    state: str
    zip_code: str
    country: str


class OrderItem(BaseModel):
    type: str  # product | prebuilt | custom
    item_id: str
    name: str
    quantity: int
    price: float


class Order(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    id: str = Field(default_factory=_new_id)
    order_number: str
    user_id: str
    items: List[OrderItem]
    subtotal: float
    tax: float
    shipping: float
    total: float
    status: OrderStatus = OrderStatus.PENDING
    shipping_address: ShippingAddress
    payment_method: str
    payment_status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


# === API REQUEST/RESPONSE MODELS ===

class AddToCartRequest(BaseModel):
    """Запрос добавления в корзину; три поля ссылки сворачиваются в ItemRef"""
    product_id: Optional[str] = None
    prebuilt_id: Optional[str] = None
    custom_build_id: Optional[str] = None
    quantity: int = Field(1, ge=1)
    price: float = Field(..., ge=0)

    @model_validator(mode="after")
    def _exactly_one_reference(self):
        self.item_ref()
        return self

    def item_ref(self) -> ItemRef:
        return ItemRef.from_fields(self.product_id, self.prebuilt_id, self.custom_build_id)


class UpdateQuantityRequest(BaseModel):
    # <= 0 удаляет позицию
    quantity: int


class BuildRequest(BaseModel):
    """Выбор конфигуратора: {slot: product_id}"""
    components: Dict[str, Optional[str]] = Field(default_factory=dict)


class SaveBuildRequest(BuildRequest):
    name: str = Field(..., min_length=1)
    is_public: bool = False


class AddBuildToCartRequest(BuildRequest):
    as_custom_build: bool = False
    name: Optional[str] = None


class CheckoutRequest(BaseModel):
    shipping_address: ShippingAddress
    payment_method: str = Field(..., min_length=1)


class SeedRequest(BaseModel):
    force: bool = False


class CartTotals(BaseModel):
    subtotal: float
    item_count: int
    tax: float
    shipping: float
    total: float


class BuildEvaluation(BaseModel):
    total_price: float
    issues: List[str]
    is_complete: bool
    missing_slots: List[str]
    can_submit: bool
    components: Dict[str, Optional[Dict[str, Any]]] = Field(default_factory=dict)

"""
Seed data for the RigShop catalog
Creates: 8 component categories + prebuilt category, 16 components, 2 prebuilt configs
"""
import logging
from typing import Any, Dict, List

from pymongo.database import Database

from .models import Category, PrebuiltConfig, Product

logger = logging.getLogger(__name__)

CATALOG_COLLECTIONS = ("categories", "products", "prebuilt_configs")

CATEGORIES = [
    ("CPU", "cpu", "Processors"),
    ("Graphics Cards", "gpu", "Discrete GPUs"),
    ("Motherboards", "motherboard", "ATX / mATX / ITX boards"),
    ("Memory", "memory", "DDR4 / DDR5 kits"),
    ("Storage", "storage", "NVMe and SATA drives"),
    ("Power Supplies", "power-supply", "ATX power supplies"),
    ("Cases", "case", "Chassis"),
    ("Cooling", "cooling", "Air and liquid CPU coolers"),
    ("Pre-built PCs", "prebuilt", "Assembled and tested systems"),
]

# (category slug, name, price, specifications, featured)
COMPONENTS = [
    ("cpu", "AMD Ryzen 5 7600X", 229.0, {"brand": "AMD", "socket": "AM5", "power": 105}, True),
    ("cpu", "Intel Core i7-14700K", 409.0, {"brand": "Intel", "socket": "LGA1700", "power": 125}, True),
    ("gpu", "NVIDIA GeForce RTX 4070", 549.0, {"brand": "NVIDIA", "power": 200}, True),
    ("gpu", "AMD Radeon RX 7900 XTX", 949.0, {"brand": "AMD", "power": 355}, False),
    ("motherboard", "ASUS TUF B650-PLUS", 199.0, {"brand": "ASUS", "socket": "AM5"}, False),
    ("motherboard", "MSI PRO Z790-A", 239.0, {"brand": "MSI", "socket": "LGA1700"}, False),
    ("memory", "Corsair Vengeance 32GB DDR5-6000", 109.0, {"brand": "Corsair", "compatibility": ["DDR5"]}, False),
    ("memory", "G.Skill Trident Z5 64GB DDR5-6400", 219.0, {"brand": "G.Skill", "compatibility": ["DDR5"]}, False),
    ("storage", "Samsung 990 Pro 2TB", 169.0, {"brand": "Samsung", "performance": "7450 MB/s"}, False),
    ("storage", "WD Black SN850X 1TB", 89.0, {"brand": "WD", "performance": "7300 MB/s"}, False),
    ("power-supply", "Corsair RM750e", 99.0, {"brand": "Corsair", "power": 750}, False),
    ("power-supply", "Seasonic Vertex GX-1000", 219.0, {"brand": "Seasonic", "power": 1000}, False),
    ("case", "Fractal North", 139.0, {"brand": "Fractal"}, False),
    ("case", "Lian Li O11 Dynamic EVO", 169.0, {"brand": "Lian Li"}, False),
    ("cooling", "Noctua NH-D15", 109.0, {"brand": "Noctua", "compatibility": ["AM5", "LGA1700"]}, False),
    ("cooling", "Arctic Liquid Freezer III 360", 119.0, {"brand": "Arctic", "compatibility": ["AM5", "LGA1700"]}, False),
]

# (name, tier, price, component names by slot, scores, target use, featured)
PREBUILTS = [
    (
        "Forge Mid AM5", "mid", 1499.0,
        {
            "cpu": "AMD Ryzen 5 7600X", "gpu": "NVIDIA GeForce RTX 4070",
            "motherboard": "ASUS TUF B650-PLUS", "ram": "Corsair Vengeance 32GB DDR5-6000",
            "storage": "WD Black SN850X 1TB", "psu": "Corsair RM750e", "case": "Fractal North",
        },
        {"gaming": 82, "productivity": 70, "streaming": 74}, ["gaming", "streaming"], True,
    ),
    (
        "Forge Ultra Z790", "ultra", 2899.0,
        {
            "cpu": "Intel Core i7-14700K", "gpu": "AMD Radeon RX 7900 XTX",
            "motherboard": "MSI PRO Z790-A", "ram": "G.Skill Trident Z5 64GB DDR5-6400",
            "storage": "Samsung 990 Pro 2TB", "psu": "Seasonic Vertex GX-1000",
            "case": "Lian Li O11 Dynamic EVO", "cooling": "Arctic Liquid Freezer III 360",
        },
        {"gaming": 96, "productivity": 92, "streaming": 94}, ["gaming", "workstation", "streaming"], True,
    ),
]


def _slugify(name: str) -> str:
    return "-".join("".join(c if c.isalnum() else " " for c in name.lower()).split())


def seed_catalog(db: Database, force: bool = False) -> Dict[str, Any]:
    """Only seed if catalog is empty or force=True (wipes catalog collections first)"""
    if not force and db.products.estimated_document_count() > 0:
        return {"status": "ok", "message": "Already seeded"}

    for name in CATALOG_COLLECTIONS:
        db[name].delete_many({})

    categories: Dict[str, Dict[str, Any]] = {}
    for name, slug, description in CATEGORIES:
        categories[slug] = Category(name=name, slug=slug, description=description).model_dump()
    db.categories.insert_many([dict(c) for c in categories.values()])

    products: List[Dict[str, Any]] = []
    for slug, name, price, specs, featured in COMPONENTS:
        products.append(Product(
            name=name,
            slug=_slugify(name),
            category_id=categories[slug]["id"],
            price=price,
            specifications=specs,
            stock_count=25,
            featured=featured,
        ).model_dump())
    db.products.insert_many([dict(p) for p in products])
    product_ids = {p["name"]: p["id"] for p in products}

    prebuilts = []
    for name, tier, price, parts, scores, target_use, featured in PREBUILTS:
        prebuilts.append(PrebuiltConfig(
            name=name,
            slug=_slugify(name),
            category=tier,
            price=price,
            target_use=target_use,
            components={slot: product_ids[part] for slot, part in parts.items()},
            performance_scores=scores,
            featured=featured,
        ).model_dump())
    db.prebuilt_configs.insert_many([dict(p) for p in prebuilts])

    logger.info(f"Seeded {len(categories)} categories, {len(products)} products, {len(prebuilts)} prebuilt configs")
    return {
        "status": "ok",
        "categories": len(categories),
        "products": len(products),
        "prebuilt_configs": len(prebuilts),
    }

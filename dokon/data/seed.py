# dokon/data/seed.py
from dokon.domain.schemas import (
    AdvertisementCreate,
    CategoryCreate,
    ProductCreate,
    PromoCodeCreate,
)
from dokon.repos.storage import Storage
from dokon.utils.logging import get_logger

logger = get_logger(__name__)

CATEGORIES = [
    {"name": "Elektronika", "slug": "elektronika", "icon": "📱"},
    {"name": "Kiyim-kechak", "slug": "kiyim-kechak", "icon": "👕"},
    {"name": "Uy-ro'zg'or", "slug": "uy-rozgor", "icon": "🏠"},
    {"name": "Sport", "slug": "sport", "icon": "⚽"},
    {"name": "Go'zallik", "slug": "gozallik", "icon": "💄"},
    {"name": "Bolalar", "slug": "bolalar", "icon": "🧸"},
]

# category given by slug, resolved to an id at seed time
PRODUCTS = [
    {
        "name": "iPhone 15 Pro Max 256GB",
        "slug": "iphone-15-pro-max-256gb",
        "description": "Apple iPhone 15 Pro Max, A17 Pro chipset, titanium dizayn, professional kamera tizimi",
        "price": 16500000,
        "oldPrice": 18000000,
        "category": "elektronika",
        "brand": "Apple",
        "images": ["https://images.unsplash.com/photo-1696446702183-cbd53f2cf2b3?w=800"],
        "colors": ["#1a1a2e", "#c4b5a0", "#f5f5f7"],
        "stock": 25,
        "rating": 4.8,
        "reviewCount": 156,
        "isPopular": True,
        "isNew": True,
    },
    {
        "name": "Samsung Galaxy S24 Ultra",
        "slug": "samsung-galaxy-s24-ultra",
        "description": "Samsung flagman smartfoni, AI imkoniyatlari, S Pen bilan",
        "price": 15900000,
        "category": "elektronika",
        "brand": "Samsung",
        "images": ["https://images.unsplash.com/photo-1610945415295-d9bbf067e59c?w=800"],
        "colors": ["#1a1a1a", "#e5e1d8", "#4a4a4a"],
        "stock": 18,
        "rating": 4.7,
        "reviewCount": 89,
        "isPopular": True,
    },
    {
        "name": "AirPods Pro 2",
        "slug": "airpods-pro-2",
        "description": "Apple AirPods Pro 2, aktiv shovqinni bostirish, adaptiv audio",
        "price": 3200000,
        "oldPrice": 3500000,
        "category": "elektronika",
        "brand": "Apple",
        "images": ["https://images.unsplash.com/photo-1588423771073-b8903fbb85b5?w=800"],
        "stock": 50,
        "rating": 4.9,
        "reviewCount": 234,
        "isPopular": True,
    },
    {
        "name": "Erkaklar uchun klassik ko'ylak",
        "slug": "erkaklar-klassik-koylak",
        "description": "100% paxta, klassik dizayn, barcha mavsumlar uchun mos",
        "price": 299000,
        "oldPrice": 450000,
        "category": "kiyim-kechak",
        "brand": "Zara",
        "images": ["https://images.unsplash.com/photo-1602810318383-e386cc2a3ccf?w=800"],
        "colors": ["#ffffff", "#1a1a2e", "#87ceeb"],
        "sizes": ["S", "M", "L", "XL", "XXL"],
        "stock": 120,
        "rating": 4.5,
        "reviewCount": 67,
        "isNew": True,
    },
    {
        "name": "Uy jihozlari to'plami",
        "slug": "uy-jihozlari-toplami",
        "description": "5 qismli oshxona anjomlar to'plami, zanglamaydigan po'lat",
        "price": 850000,
        "oldPrice": 1200000,
        "category": "uy-rozgor",
        "brand": "Tefal",
        "images": ["https://images.unsplash.com/photo-1556909114-f6e7ad7d3136?w=800"],
        "stock": 40,
        "rating": 4.4,
        "reviewCount": 112,
    },
    {
        "name": "Yoga gilamlari Premium",
        "slug": "yoga-gilamlari-premium",
        "description": "Ekologik toza, sirpanmaydigan, 6mm qalinlik",
        "price": 189000,
        "category": "sport",
        "brand": "Nike",
        "images": ["https://images.unsplash.com/photo-1601925260368-ae2f83cf8b7f?w=800"],
        "colors": ["#4a4a4a", "#ff6b6b", "#4ecdc4", "#ffe66d"],
        "stock": 75,
        "rating": 4.7,
        "reviewCount": 89,
        "isPopular": True,
        "isNew": True,
    },
]

PROMO_CODES = [
    {"code": "YANGI20", "discountPercent": 20, "isActive": True, "usageLimit": 100, "usageCount": 45},
    {"code": "CHEGIRMA10", "discountPercent": 10, "isActive": True, "usageLimit": None, "usageCount": 120},
    {"code": "VIP30", "discountPercent": 30, "isActive": False, "usageLimit": 50, "usageCount": 50},
]

ADVERTISEMENTS = [
    {
        "businessName": "Leziz Restoran",
        "description": "O'zbekcha taomlarning eng yaxshi joyi. Har kuni yangi taomlar",
        "imageUrl": "https://images.unsplash.com/photo-1495521821757-a1efb6729352?w=800",
        "contactPhone": "+998-90-123-45-67",
    },
    {
        "businessName": "Tech Store",
        "description": "Eng yangi elektronika va gadjetlar. Muddatli to'lov mavjud",
        "imageUrl": "https://images.unsplash.com/photo-1556656793-08538906a9f8?w=800",
        "contactPhone": "+998-93-345-67-89",
    },
]


def seed(storage: Storage):
    # not forcing: only seed an empty catalog
    if storage.get_categories():
        return

    category_ids = {}
    for raw in CATEGORIES:
        category = storage.create_category(CategoryCreate(**raw))
        category_ids[category.slug] = category.id

    for raw in PRODUCTS:
        fields = dict(raw)
        fields["categoryId"] = category_ids[fields.pop("category")]
        storage.create_product(ProductCreate.model_validate(fields))

    for raw in PROMO_CODES:
        promo = storage.create_promo_code(PromoCodeCreate.model_validate(raw))
        # counters are zeroed on create, sample ones are restored afterwards
        storage.update_promo_code(promo.id, {"usage_count": raw["usageCount"]})

    for raw in ADVERTISEMENTS:
        storage.create_advertisement(AdvertisementCreate.model_validate(raw))

    logger.info(
        f"Sample data seeded: {len(CATEGORIES)} categories, {len(PRODUCTS)} products, "
        f"{len(PROMO_CODES)} promo codes, {len(ADVERTISEMENTS)} ads"
    )

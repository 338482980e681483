from conftest import make_storage
from dokon.data.seed import CATEGORIES, PRODUCTS, seed


def test_seed_fills_empty_catalog_once():
    storage = make_storage("sql")

    seed(storage)
    seed(storage)

    assert len(storage.get_categories()) == len(CATEGORIES)
    assert len(storage.get_products()) == len(PRODUCTS)
    assert storage.get_promo_code_by_code("yangi20").usage_count == 45
    assert not storage.get_promo_code_by_code("VIP30").is_usable()
    assert len(storage.get_advertisements()) == 2


def test_seed_products_point_at_seeded_categories():
    storage = make_storage("memory")
    seed(storage)

    category_ids = {c.id for c in storage.get_categories()}
    assert all(p.category_id in category_ids for p in storage.get_products())

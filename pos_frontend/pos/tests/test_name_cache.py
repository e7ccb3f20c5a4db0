# pos/tests/test_name_cache.py

from __future__ import annotations

import json

from django.test import SimpleTestCase

from pos.services.name_cache import UNKNOWN_PRODUCT, ProductNameCache, placeholder_name


SCAN_ITEMS = [
    {"item_id": 1, "product_id": 10, "product_name": "Widget"},
    {"item_id": 2, "product_id": 11, "product_name": "Gadget"},
]


class ProductNameCacheTests(SimpleTestCase):
    def test_remember_stores_names_by_line_id(self):
        cache = ProductNameCache()

        stored = cache.remember(SCAN_ITEMS)

        self.assertEqual(stored, 2)
        self.assertEqual(len(cache), 2)
        self.assertIn(1, cache)
        self.assertIn("1", cache)
        self.assertEqual(cache.get(1), {"name": "Widget", "product_id": 10})

    def test_remember_skips_incomplete_items(self):
        cache = ProductNameCache()

        stored = cache.remember(
            [
                {"item_id": 1, "product_name": ""},
                {"product_id": 3, "product_name": "No line id"},
                "not-a-dict",
                {"item_id": 4, "product_name": "Kept"},
            ]
        )

        self.assertEqual(stored, 1)
        self.assertEqual(cache.get(4), {"name": "Kept", "product_id": None})

    def test_remember_handles_missing_items(self):
        cache = ProductNameCache()
        self.assertEqual(cache.remember(None), 0)
        self.assertEqual(len(cache), 0)

    def test_lookup_matches_on_product_id(self):
        cache = ProductNameCache()
        cache.remember(SCAN_ITEMS)

        self.assertEqual(cache.lookup(11), "Gadget")
        self.assertIsNone(cache.lookup(99))

    def test_missing_product_id_never_matches(self):
        cache = ProductNameCache()
        cache.remember([{"item_id": 5, "product_name": "Loose"}])

        self.assertIsNone(cache.lookup(None))
        self.assertEqual(cache.display_name(None), UNKNOWN_PRODUCT)

    def test_display_name_placeholders(self):
        cache = ProductNameCache()
        cache.remember(SCAN_ITEMS)

        self.assertEqual(cache.display_name(10), "Widget")
        self.assertEqual(cache.display_name(12), "Product #12")
        self.assertEqual(placeholder_name(None), "Unknown product")

    def test_clear(self):
        cache = ProductNameCache()
        cache.remember(SCAN_ITEMS)

        cache.clear()

        self.assertEqual(len(cache), 0)
        self.assertEqual(cache.as_dict(), {})

    def test_survives_json_session_serialization(self):
        cache = ProductNameCache()
        cache.remember(SCAN_ITEMS)

        restored = ProductNameCache(json.loads(json.dumps(cache.as_dict())))

        self.assertEqual(restored.as_dict(), cache.as_dict())
        self.assertEqual(restored.lookup(10), "Widget")

    def test_invalid_session_entries_are_dropped(self):
        cache = ProductNameCache({"1": "Widget", "2": {"product_id": 3}, "3": {"name": "Ok"}})
        self.assertEqual(cache.as_dict(), {"3": {"name": "Ok", "product_id": None}})

"""
Normalizer Tests
"""

from keywordguard.normalizer import normalize_text


class TestNormalizeText:

    def test_lowercases(self):
        assert normalize_text("Shopify PLUS") == "shopify plus"

    def test_collapses_whitespace(self):
        assert normalize_text("shopify \t\n  plus") == "shopify plus"

    def test_trims(self):
        assert normalize_text("   ecommerce  \n") == "ecommerce"

    def test_smart_quotes_to_ascii(self):
        assert normalize_text("“Shopify” isn’t ‘liquid’") == \
            "\"shopify\" isn't 'liquid'"

    def test_dashes_to_ascii(self):
        assert normalize_text("E–commerce — online") == "e-commerce - online"

    def test_empty_input(self):
        assert normalize_text("") == ""

    def test_whitespace_only(self):
        assert normalize_text("  \n\t ") == ""

    def test_idempotent(self):
        once = normalize_text("  Senior “Shopify”   Developer ")
        assert normalize_text(once) == once

"""
Tests for the line classifier — rule order, keyword filtering, quantity
prefixes and name cleanup.
"""
import pytest

from conftest import frag
from models.schemas import LineCategory, MatchConfig
from services.classify_service import classify_line, strip_quantity


def classify(text):
    return classify_line(frag(text, 0, 0, 100, 20))


class TestIgnorable:

    @pytest.mark.parametrize("text", [
        "SUBTOTAL $45.00",
        "Total: 52.10",
        "CASH",
        "Change Due 0.00",
        "Table 12",
        "Suggested Tip",
        "18% = $8.10",
        "15% ($6.75)",
        "Sub-Total",
        "12:41 PM",
    ])
    def test_keywords(self, text):
        assert classify(text).category == LineCategory.IGNORABLE

    def test_short_line(self):
        assert classify("ab").category == LineCategory.IGNORABLE
        assert classify("  x ").category == LineCategory.IGNORABLE

    def test_keyword_inside_longer_word(self):
        for text in ("Totals", "Tips appreciated", "Suggested Tips", "Amount Due"):
            assert classify(text).category == LineCategory.IGNORABLE

    def test_time_without_space(self):
        assert classify("7:45PM").category == LineCategory.IGNORABLE

    def test_lamb_is_not_a_timestamp(self):
        line = classify("Lamb Skewers")
        assert line.category == LineCategory.ITEM_NAME_ONLY
        assert line.name == "Lamb Skewers"

    def test_keyword_beats_tax(self):
        assert classify("Total incl. tax").category == LineCategory.IGNORABLE


class TestTaxLabel:

    @pytest.mark.parametrize("text", ["TAX", "Sales Tax", "Tax:", "TAX1 8.875%", "SALESTAX"])
    def test_tax_variants(self, text):
        assert classify(text).category == LineCategory.TAX_LABEL

    def test_tax_with_amount_is_still_label(self):
        line = classify("TAX 6.58")
        assert line.category == LineCategory.TAX_LABEL
        assert line.price is None


class TestItemsAndPrices:

    def test_same_line_item(self):
        line = classify("1 Beef Tofu $17.99")
        assert line.category == LineCategory.ITEM_WITH_QTY_AND_PRICE
        assert line.name == "Beef Tofu"
        assert line.price == 17.99

    def test_same_line_item_glued_price(self):
        line = classify("1 Beef Tofu$17.99")
        assert line.category == LineCategory.ITEM_WITH_QTY_AND_PRICE
        assert line.name == "Beef Tofu"

    def test_price_only(self):
        line = classify("$16.99")
        assert line.category == LineCategory.PRICE_ONLY
        assert line.price == 16.99

    def test_price_only_without_symbol_is_not_a_quantity(self):
        line = classify("32.49")
        assert line.category == LineCategory.PRICE_ONLY
        assert line.price == 32.49

    def test_price_only_tolerates_trailing_flag(self):
        line = classify("16.99 T")
        assert line.category == LineCategory.PRICE_ONLY

    def test_price_only_slack_is_configurable(self):
        line = classify_line(frag("16.99 T", 0, 0, 100, 20), MatchConfig(price_slack=0))
        assert line.category == LineCategory.UNCLASSIFIED

    def test_item_with_quantity(self):
        line = classify("1 Seafood Pancake")
        assert line.category == LineCategory.ITEM_WITH_QTY
        assert line.name == "Seafood Pancake"

    def test_quantity_with_x_marker(self):
        line = classify("2x Coke")
        assert line.category == LineCategory.ITEM_WITH_QTY
        assert line.name == "Coke"

    def test_name_only(self):
        line = classify("(D) Galbi Combo")
        assert line.category == LineCategory.ITEM_NAME_ONLY
        assert line.name == "(D) Galbi Combo"

    def test_name_whitespace_collapsed(self):
        assert classify("  Toki   Classic ").name == "Toki Classic"

    @pytest.mark.parametrize("text", ["* extra spicy", "- no onions"])
    def test_modifier_lines(self, text):
        assert classify(text).category == LineCategory.UNCLASSIFIED

    def test_name_with_price_but_no_quantity_is_unclassified(self):
        assert classify("Coke 2.50").category == LineCategory.UNCLASSIFIED

    def test_fragment_is_kept(self):
        f = frag("$3.00", 5, 6, 7, 8)
        assert classify_line(f).fragment is f


class TestStripQuantity:

    def test_strips_leading_count(self):
        assert strip_quantity("3 Spicy Ramen") == "Spicy Ramen"

    def test_keeps_price_like_start(self):
        assert strip_quantity("32.49") == "32.49"

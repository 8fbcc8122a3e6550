"""
Unit tests for row coercion and the RowTransformer.

Run: pytest tests/unit/test_row_transformer.py -v
"""

from datetime import date
from decimal import Decimal
import pytest

from services.row_transformer import (
    RowTransformer,
    coerce_number,
    coerce_integer,
    coerce_boolean,
    parse_date,
)
from services.entity_resolver import Matched, Created, Failed
from config.import_fields import ORDER_ITEM_FIELDS, QUOTE_FIELDS, EXPENSE_FIELDS
from models.order_item import OrderItemCreate
from models.quote import QuoteCreate
from models.expense import ExpenseCreate
from parsers.csv_parser import RawRow
from exceptions import ResolutionFailure, TransformError


def make_row(row_index: int = 1, **values) -> RawRow:
    """RawRow whose headers are the keyword names."""
    return RawRow(row_index=row_index, pairs=tuple(values.items()))


@pytest.fixture
def order_item_transformer() -> RowTransformer:
    return RowTransformer(ORDER_ITEM_FIELDS, OrderItemCreate)


@pytest.fixture
def quote_transformer() -> RowTransformer:
    return RowTransformer(QUOTE_FIELDS, QuoteCreate, owner_column="user_id")


@pytest.fixture
def expense_transformer() -> RowTransformer:
    return RowTransformer(EXPENSE_FIELDS, ExpenseCreate, owner_column="user_id")


# ===================
# COERCION
# ===================

class TestCoerceNumber:
    """Tests for coerce_number()"""

    def test_plain_number(self):
        assert coerce_number("450") == Decimal("450")

    def test_currency_and_separators_stripped(self):
        assert coerce_number("R 1,250.50") == Decimal("1250.50")

    def test_negative_number(self):
        assert coerce_number("-12.5") == Decimal("-12.5")

    def test_text_becomes_zero(self):
        assert coerce_number("abc") == Decimal("0")

    def test_empty_becomes_zero(self):
        assert coerce_number("") == Decimal("0")
        assert coerce_number(None) == Decimal("0")

    def test_garbled_number_becomes_zero(self):
        assert coerce_number("1.2.3") == Decimal("0")

    def test_integer_truncates(self):
        assert coerce_integer("3.9") == 3
        assert coerce_integer("abc") == 0


class TestCoerceBoolean:
    """Tests for coerce_boolean()"""

    @pytest.mark.parametrize("raw", ["yes", "Yes", "TRUE", "y", "1"])
    def test_truthy_values(self, raw):
        assert coerce_boolean(raw) is True

    @pytest.mark.parametrize("raw", ["no", "false", "", "0", "maybe"])
    def test_everything_else_is_false(self, raw):
        assert coerce_boolean(raw) is False


class TestParseDate:
    """Tests for parse_date()"""

    def test_day_first_slashes(self):
        assert parse_date("05/03/2024") == date(2024, 3, 5)

    def test_day_first_with_time_suffix(self):
        assert parse_date("31/12/2024 10:30") == date(2024, 12, 31)

    def test_iso_date(self):
        assert parse_date("2024-03-05") == date(2024, 3, 5)

    def test_long_form_date(self):
        assert parse_date("5 March 2024") == date(2024, 3, 5)

    def test_unrecognised_returns_none(self):
        assert parse_date("not a date") is None

    def test_empty_returns_none(self):
        assert parse_date("  ") is None


# ===================
# TRANSFORMER
# ===================

class TestTransformOrderItem:
    """Tests for RowTransformer.transform() on order items."""

    def test_builds_record_from_mapped_columns(self, order_item_transformer):
        row = make_row(**{"Order Number": "1001", "Description": "Choc cake", "Sell Price (excl VAT)": "450"})
        mapping = {
            "order_id": "Order Number",
            "description": "Description",
            "sell_price": "Sell Price (excl VAT)",
        }

        record = order_item_transformer.transform(row, mapping, Matched(55))

        assert record.order_id == 55
        assert record.description == "Choc cake"
        assert record.sell_price == Decimal("450")

    def test_created_resolution_supplies_id(self, order_item_transformer):
        row = make_row(**{"Order": "1001"})

        record = order_item_transformer.transform(row, {"order_id": "Order"}, Created(9))

        assert record.order_id == 9

    def test_unmapped_fields_take_defaults(self, order_item_transformer):
        row = make_row(**{"Order": "1001"})

        record = order_item_transformer.transform(row, {"order_id": "Order"}, Matched(1))

        assert record.quantity == 1
        assert record.serving == 0
        assert record.cost_price == Decimal("0")
        assert record.description is None

    def test_unparsable_numbers_become_zero(self, order_item_transformer):
        row = make_row(**{"Order": "1001", "Cost": "abc", "Sell": ""})
        mapping = {"order_id": "Order", "cost_price": "Cost", "sell_price": "Sell"}

        record = order_item_transformer.transform(row, mapping, Matched(1))

        assert record.cost_price == Decimal("0")
        assert record.sell_price == Decimal("0")

    def test_negative_servings_kept(self, order_item_transformer):
        row = make_row(**{"Order": "1001", "Servings": "-2"})

        record = order_item_transformer.transform(row, {"order_id": "Order", "serving": "Servings"}, Matched(1))

        assert record.serving == -2

    def test_failed_resolution_raises(self, order_item_transformer):
        row = make_row(row_index=4, **{"Order": "ABC"})

        with pytest.raises(ResolutionFailure) as exc_info:
            order_item_transformer.transform(row, {"order_id": "Order"}, Failed("Order not found: ABC"))

        assert exc_info.value.row_index == 4
        assert exc_info.value.message == "Order not found: ABC"

    def test_missing_required_reference_raises(self, order_item_transformer):
        row = make_row(**{"Order": "1001"})

        with pytest.raises(TransformError):
            order_item_transformer.transform(row, {"order_id": "Order"}, None)

    def test_insert_dict_omits_empty_optionals(self, order_item_transformer):
        row = make_row(**{"Order": "1001", "Sell": "12.50"})

        record = order_item_transformer.transform(row, {"order_id": "Order", "sell_price": "Sell"}, Matched(3))
        fields = record.to_insert()

        assert fields["order_id"] == 3
        assert Decimal(fields["sell_price"]) == Decimal("12.50")
        assert "description" not in fields
        assert "notes" not in fields


class TestTransformQuote:
    """Tests for RowTransformer.transform() on quotes."""

    def test_owner_is_stamped(self, quote_transformer):
        row = make_row(**{"Quote": "Q-1"})

        record = quote_transformer.transform(row, {"quote_number": "Quote"}, None, owner_id=7)

        assert record.user_id == 7
        assert record.quote_number == "Q-1"
        assert record.contact_id is None
        assert record.status == "Draft"
        assert record.event_type == "Other"

    def test_contact_resolution_fills_contact_id(self, quote_transformer):
        row = make_row(**{"Quote": "Q-1", "Contact": "Jane Doe"})
        mapping = {"quote_number": "Quote", "contact_name": "Contact"}

        record = quote_transformer.transform(row, mapping, Matched(21), owner_id=7)

        assert record.contact_id == 21

    def test_fields_land_in_renamed_columns(self, quote_transformer):
        row = make_row(**{"Quote": "Q-1", "Theme": "Unicorn", "Price": "1,200"})
        mapping = {"quote_number": "Quote", "description": "Theme", "price": "Price"}

        fields = quote_transformer.transform(row, mapping, None, owner_id=7).to_insert()

        assert fields["theme"] == "Unicorn"
        assert Decimal(fields["total"]) == Decimal("1200")
        assert "price" not in fields

    def test_optional_date_converted_to_iso(self, quote_transformer):
        row = make_row(**{"Quote": "Q-1", "When": "14/02/2025"})

        record = quote_transformer.transform(row, {"quote_number": "Quote", "event_date": "When"}, None, owner_id=7)

        assert record.event_date == "2025-02-14"

    def test_unparsable_optional_date_kept_verbatim(self, quote_transformer):
        row = make_row(**{"Quote": "Q-1", "When": "TBC"})

        record = quote_transformer.transform(row, {"quote_number": "Quote", "event_date": "When"}, None, owner_id=7)

        assert record.event_date == "TBC"

    def test_empty_required_text_raises(self, quote_transformer):
        row = make_row(row_index=3, **{"Quote": "  "})

        with pytest.raises(TransformError) as exc_info:
            quote_transformer.transform(row, {"quote_number": "Quote"}, None, owner_id=7)

        assert exc_info.value.field == "quote_number"
        assert exc_info.value.row_index == 3

    def test_model_validation_failure_becomes_transform_error(self, quote_transformer):
        row = make_row(**{"Quote": "Q" * 60})

        with pytest.raises(TransformError) as exc_info:
            quote_transformer.transform(row, {"quote_number": "Quote"}, None, owner_id=7)

        assert exc_info.value.field == "quote_number"


class TestTransformExpense:
    """Tests for RowTransformer.transform() on expenses."""

    def test_builds_expense(self, expense_transformer):
        row = make_row(**{
            "Date": "01/04/2024",
            "Description": "Flour",
            "Amount": "R 230.00",
            "Tax Deductible": "yes",
        })
        mapping = {
            "date": "Date",
            "description": "Description",
            "amount": "Amount",
            "tax_deductible": "Tax Deductible",
        }

        record = expense_transformer.transform(row, mapping, None, owner_id=7)

        assert record.date == "2024-04-01"
        assert record.amount == Decimal("230.00")
        assert record.tax_deductible is True
        assert record.is_recurring is False
        assert record.user_id == 7

    def test_unparsable_required_date_raises(self, expense_transformer):
        row = make_row(row_index=2, **{"Date": "someday", "Description": "Flour", "Amount": "10"})
        mapping = {"date": "Date", "description": "Description", "amount": "Amount"}

        with pytest.raises(TransformError) as exc_info:
            expense_transformer.transform(row, mapping, None, owner_id=7)

        assert exc_info.value.field == "date"
        assert "someday" in exc_info.value.message

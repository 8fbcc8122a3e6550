"""
Importable fields per import type.

Display names follow the column labels of the predecessor tool's exports
so the proposed mapping usually needs no correction.
"""

from models.imports import FieldSpec, FieldType

# Orders without a match are auto-created only for keys shaped like the
# predecessor tool's order numbers (plain digits)
ORDER_NUMBER_PATTERN = r"^\d+$"

# Status given to orders synthesized during import
PLACEHOLDER_ORDER_STATUS = "Auto-Created"


ORDER_ITEM_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec(db_field="order_id", display_name="Order Number/ID", required=True,
              field_type=FieldType.REFERENCE),
    FieldSpec(db_field="description", display_name="Description/Details"),
    FieldSpec(db_field="serving", display_name="Servings", field_type=FieldType.INTEGER),
    FieldSpec(db_field="labour", display_name="Labour", field_type=FieldType.NUMBER),
    FieldSpec(db_field="hours", display_name="Hours", field_type=FieldType.NUMBER),
    FieldSpec(db_field="overhead", display_name="Overhead", field_type=FieldType.NUMBER),
    FieldSpec(db_field="recipes", display_name="Recipes"),
    FieldSpec(db_field="cost_price", display_name="Cost Price", field_type=FieldType.NUMBER),
    FieldSpec(db_field="sell_price", display_name="Sell Price", field_type=FieldType.NUMBER),
    FieldSpec(db_field="quantity", display_name="Quantity", field_type=FieldType.INTEGER,
              default="1"),
    FieldSpec(db_field="notes", display_name="Notes"),
)


QUOTE_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec(db_field="quote_number", display_name="Quote Number/ID", required=True),
    FieldSpec(db_field="contact_name", display_name="Contact Name",
              field_type=FieldType.REFERENCE, column="contact_id"),
    FieldSpec(db_field="event_date", display_name="Event Date", field_type=FieldType.DATE),
    FieldSpec(db_field="event_type", display_name="Event Type", default="Other"),
    FieldSpec(db_field="description", display_name="Description/Theme", column="theme"),
    FieldSpec(db_field="price", display_name="Price/Total", field_type=FieldType.NUMBER,
              column="total"),
    FieldSpec(db_field="status", display_name="Status", default="Draft"),
    FieldSpec(db_field="expiry_date", display_name="Expiry Date", field_type=FieldType.DATE),
    FieldSpec(db_field="notes", display_name="Notes"),
)


EXPENSE_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec(db_field="date", display_name="Date", required=True, field_type=FieldType.DATE),
    FieldSpec(db_field="description", display_name="Description", required=True),
    FieldSpec(db_field="category", display_name="Category"),
    FieldSpec(db_field="amount", display_name="Amount (Incl VAT)", required=True,
              field_type=FieldType.NUMBER),
    FieldSpec(db_field="supplier", display_name="Supplier/Vendor"),
    FieldSpec(db_field="payment_source", display_name="Payment Source"),
    FieldSpec(db_field="vat", display_name="VAT", field_type=FieldType.NUMBER),
    FieldSpec(db_field="total_inc_tax", display_name="Total Inc Tax", field_type=FieldType.NUMBER),
    FieldSpec(db_field="tax_deductible", display_name="Tax Deductible", field_type=FieldType.BOOLEAN),
    FieldSpec(db_field="is_recurring", display_name="Is Recurring", field_type=FieldType.BOOLEAN),
)

"""
Store access for the import pipeline.

RecordRepository inserts finished rows into a destination table.
OrderRepository and ContactRepository also look up the entities that
imported rows refer to; orders can additionally be auto-created.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from config.import_fields import PLACEHOLDER_ORDER_STATUS
from exceptions import DatabaseError, DuplicateError
from models.order import ContactResponse, OrderResponse

logger = structlog.get_logger(__name__)

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


def is_unique_violation(error: Exception) -> bool:
    """True when the store rejected a write because the key already exists."""
    if getattr(error, "code", None) == UNIQUE_VIOLATION:
        return True
    return "duplicate key" in str(error).lower()


class RecordRepository:
    """
    Insert-only access to a destination table.
    """

    def __init__(self, table: str):
        self.db = get_supabase_client()
        self.table = table

    def insert(self, fields: dict) -> int:
        """
        Insert one row.

        Args:
            fields: Column -> value

        Returns:
            Id of the new row

        Raises:
            DuplicateError: If a unique constraint rejects the row
            DatabaseError: If the insert fails for any other reason
        """
        try:
            result = (
                self.db.table(self.table)
                .insert(fields)
                .execute()
            )
        except Exception as e:
            if is_unique_violation(e):
                raise DuplicateError(self.table, "key", str(e))
            logger.error("record_insert_failed", table=self.table, error=str(e))
            raise DatabaseError("insert", str(e))

        if not result.data:
            raise DatabaseError("insert", f"No row returned from {self.table}")

        return result.data[0]["id"]


class OrderRepository:
    """
    Orders as referenced by imported order items.

    Natural key is order_number, scoped to the owner.
    """

    entity_name = "Order"
    supports_placeholders = True

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "orders"

    def find_by_id(self, order_id: int, owner_id: int) -> Optional[OrderResponse]:
        """Get an owner's order by id. Returns None if not found."""
        try:
            result = (
                self.db.table(self.table)
                .select("id, order_number, user_id, status")
                .eq("id", order_id)
                .eq("user_id", owner_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("find_order_by_id_failed", order_id=order_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return OrderResponse(**result.data[0])

    def find_by_natural_key(self, order_number: str, owner_id: int) -> Optional[OrderResponse]:
        """Get an owner's order by order number. Returns None if not found."""
        try:
            result = (
                self.db.table(self.table)
                .select("id, order_number, user_id, status")
                .eq("order_number", order_number)
                .eq("user_id", owner_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "find_order_by_number_failed",
                order_number=order_number,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return OrderResponse(**result.data[0])

    def create_placeholder(self, order_number: str, owner_id: int) -> OrderResponse:
        """
        Create a minimal order so imported items have something to attach to.

        Raises:
            DuplicateError: If another writer created the order first
            DatabaseError: If the insert fails
        """
        insert_data = {
            "order_number": order_number,
            "user_id": owner_id,
            "status": PLACEHOLDER_ORDER_STATUS,
            "notes": f"Placeholder order created during import for order number {order_number}",
        }

        try:
            result = (
                self.db.table(self.table)
                .insert(insert_data)
                .execute()
            )
        except Exception as e:
            if is_unique_violation(e):
                raise DuplicateError("Order", "order_number", order_number)
            logger.error(
                "create_placeholder_order_failed",
                order_number=order_number,
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

        if not result.data:
            raise DatabaseError("insert", f"No row returned from {self.table}")

        order = OrderResponse(**result.data[0])
        logger.info(
            "placeholder_order_created",
            order_id=order.id,
            order_number=order_number,
            owner_id=owner_id
        )
        return order


class ContactRepository:
    """
    Contacts as referenced by imported quotes.

    Natural key is the contact's full name, matched case-insensitively
    among the owner's contacts. Contacts are never auto-created.
    """

    entity_name = "Contact"
    supports_placeholders = False

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "contacts"

    def find_by_id(self, contact_id: int, owner_id: int) -> Optional[ContactResponse]:
        """Get an owner's contact by id. Returns None if not found."""
        try:
            result = (
                self.db.table(self.table)
                .select("id, user_id, first_name, last_name")
                .eq("id", contact_id)
                .eq("user_id", owner_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("find_contact_by_id_failed", contact_id=contact_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return ContactResponse(**result.data[0])

    def find_by_natural_key(self, name: str, owner_id: int) -> Optional[ContactResponse]:
        """
        Get an owner's contact by full name.

        Candidates are narrowed by first name in the store, then compared
        on the whole name. Returns the lowest id on ties.
        """
        wanted = _normalize_name(name)
        if not wanted:
            return None
        first_name = wanted.split(" ")[0]

        try:
            result = (
                self.db.table(self.table)
                .select("id, user_id, first_name, last_name")
                .eq("user_id", owner_id)
                .ilike("first_name", first_name)
                .order("id")
                .execute()
            )
        except Exception as e:
            logger.error("find_contact_by_name_failed", name=name, error=str(e))
            raise DatabaseError("select", str(e))

        for row in result.data or []:
            contact = ContactResponse(**row)
            if _normalize_name(contact.full_name) == wanted:
                return contact
        return None

    def create_placeholder(self, name: str, owner_id: int) -> ContactResponse:
        raise NotImplementedError("Contacts are never auto-created")


def _normalize_name(name: str) -> str:
    return " ".join(name.lower().split())

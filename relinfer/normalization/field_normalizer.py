# ==============================================
# FieldNormalizer
# ==============================================
#
# PURPOSE:
#   Turn source table and field names ("Order Items", "customerIds",
#   "Line-Item #") into identifiers that are safe to emit in DDL.
#   The placement planner builds every FK column and junction table
#   name through this module.
#
# CLASS: FieldNormalizer
# ----------------------
#   Stateless apart from a memo of names already converted.
#
#   Methods:
#   --------
#   - normalize(name: str) -> str
#       Convert a single name to snake_case.
#
# FUNCTIONS:
# ----------
#   - sanitize_table_name(name) / sanitize_column_name(name)
#       snake_case + guards: empty names, leading digits, reserved words.
#
# RULES:
# ------
#   1. camelCase    → snake_case    (customerIds → customer_ids)
#   2. PascalCase   → snake_case    (OrderItems → order_items)
#   3. ALLCAPS      → lowercase     (SKU → sku)
#   4. Mixed abbrev → snake_case    (HTTPStatus → http_status)
#   5. Spaces, dashes, symbols → underscore, collapsed
#   6. Reserved word → suffixed     (order → order_table / order_column)
#
# ==============================================

import re
from typing import Dict

RESERVED_WORDS = frozenset({
    "select", "from", "where", "join", "inner", "outer", "left", "right",
    "union", "create", "drop", "alter", "insert", "update", "delete",
    "grant", "revoke", "commit", "rollback", "transaction", "table",
    "order", "group", "by", "index", "key", "primary", "foreign",
    "references", "constraint", "user", "limit",
})


class FieldNormalizer:
    """
    Converts table and field names to canonical snake_case format.
    """

    def __init__(self):
        self._mappings: Dict[str, str] = {}

    def normalize(self, name: str) -> str:
        """
        Convert a name to snake_case.

        Args:
            name: Raw name (e.g., "customerIds", "Order Items", "SKU")

        Returns:
            snake_case name (e.g., "customer_ids", "order_items", "sku")
        """
        if not name:
            return ""

        if name in self._mappings:
            return self._mappings[name]

        normalized = self._camel_to_snake(name)
        self._mappings[name] = normalized
        return normalized

    def _camel_to_snake(self, name: str) -> str:
        # Remove any non-alphanumeric characters except underscores
        name = re.sub(r'[^a-zA-Z0-9_]', '_', name)

        # Handle sequences of capitals (e.g., "HTTPStatus" -> "HTTP_Status")
        name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)

        # Insert underscore before capital letters that follow lowercase letters or digits
        name = re.sub(r'([a-z\d])([A-Z])', r'\1_\2', name)

        name = name.lower()
        name = re.sub(r'_+', '_', name)
        return name.strip('_')


_normalizer = FieldNormalizer()


def _sanitize(name: str, kind: str, digit_prefix: str) -> str:
    snake = _normalizer.normalize(name)
    if not snake:
        return f"unnamed_{kind}"
    if snake[0].isdigit():
        snake = f"{digit_prefix}_{snake}"
    if snake in RESERVED_WORDS:
        snake = f"{snake}_{kind}"
    return snake


def sanitize_table_name(name: str) -> str:
    return _sanitize(name, "table", "t")


def sanitize_column_name(name: str) -> str:
    return _sanitize(name, "column", "c")

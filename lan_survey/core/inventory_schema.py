"""
Versioned header layouts of the persisted inventory.

Older inventories were written with other column spellings. Each layout
is described by an InventorySchema; normalize_header maps whatever shape
a file has onto the current field names.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .data_models import INVENTORY_COLUMNS
from ..utils.error_handler import InventoryFileError


@dataclass(frozen=True)
class InventorySchema:
    """
    One historical inventory layout.

    Attributes:
        version: Layout identifier
        aliases: Header spelling -> current field name
        columns: Columns the layout was written with
    """
    version: str
    aliases: Dict[str, str] = field(default_factory=dict)
    columns: Tuple[str, ...] = ()

    def canonical(self, column: str) -> str:
        return self.aliases.get(column, column)

    def recognizes(self, headers: Sequence[str]) -> bool:
        if any(column in self.aliases for column in headers):
            return True
        return tuple(headers) == self.columns


SCHEMA_V1 = InventorySchema(
    version="v1",
    aliases={"user_space": "segments", "manual_name": "name"},
    columns=("ip", "user_space", "manual_name"),
)
SCHEMA_V2 = InventorySchema(version="v2", columns=("ip", "segments", "name"))
SCHEMA_V3 = InventorySchema(version="v3", columns=tuple(INVENTORY_COLUMNS))

SCHEMAS: List[InventorySchema] = [SCHEMA_V1, SCHEMA_V2, SCHEMA_V3]

REQUIRED_FIELDS = (
    ("ip", "ip"),
    ("segments", "segments (or user_space)"),
    ("name", "name (or manual_name)"),
)


def detect_schema(headers: Sequence[str]) -> InventorySchema:
    """Pick the layout a header was written with."""
    for schema in SCHEMAS:
        if schema.recognizes(headers):
            return schema
    return SCHEMA_V2


def normalize_header(
    headers: Sequence[str], path: Optional[str] = None
) -> Tuple[InventorySchema, List[str]]:
    """
    Map an inventory header onto the current field names.

    Legacy spellings are accepted in any mix with current ones.

    Args:
        headers: Header cells, already trimmed
        path: Inventory path, used in error messages

    Returns:
        Tuple[InventorySchema, List[str]]: Detected layout and the
        normalized column names in file order

    Raises:
        InventoryFileError: If a required column is missing or an unknown
            column is present
    """
    schema = detect_schema(headers)
    normalized = [schema.canonical(column) for column in headers]

    for field_name, label in REQUIRED_FIELDS:
        if field_name not in normalized:
            raise InventoryFileError(
                f"Inventory header must contain {label}", path=path, line_number=1
            )

    unknown = [column for column in normalized if column not in INVENTORY_COLUMNS]
    if unknown:
        raise InventoryFileError(
            f"Inventory header has unsupported columns: {', '.join(unknown)}",
            path=path,
            line_number=1,
        )

    return schema, normalized

"""
Schema generation for mapped entity types.

Only column types, PRIMARY KEY and AUTOINCREMENT are emitted. NOT NULL is
recorded on the column descriptor but not enforced in the generated DDL.
"""
import logging
from collections.abc import Iterable

from sqliteorm.metadata import ColumnDescriptor, SemanticType

logger = logging.getLogger(__name__)

STORAGE_TYPES: dict[SemanticType, str] = {
    SemanticType.INTEGER64: 'INTEGER',
    SemanticType.REAL: 'REAL',
    SemanticType.BOOLEAN: 'INTEGER',
    SemanticType.TEXT: 'TEXT',
    SemanticType.TIMESTAMP: 'TEXT',
    SemanticType.BINARY: 'BLOB',
    SemanticType.ENUM_INTEGER: 'INTEGER',
}


def column_definition(col: ColumnDescriptor) -> str:
    """Render one column of a CREATE TABLE statement."""
    definition = f'{col.name} {STORAGE_TYPES[col.semantic_type]}'
    if col.is_primary_key:
        definition += ' PRIMARY KEY'
    if col.is_autoincrement:
        definition += ' AUTOINCREMENT'
    return definition


def build_create_table_statement(table_name: str, columns: Iterable[ColumnDescriptor]) -> str:
    """Generate an idempotent CREATE TABLE statement.

    Args:
        table_name: Table name, used verbatim
        columns: Column descriptors in declaration order; ignored columns are skipped

    Returns
        SQL text
    """
    definitions = [column_definition(col) for col in columns if not col.is_ignored]
    return f"CREATE TABLE IF NOT EXISTS {table_name} ({', '.join(definitions)})"


def build_drop_table_statement(table_name: str) -> str:
    """Generate an idempotent DROP TABLE statement."""
    return f'DROP TABLE IF EXISTS {table_name}'

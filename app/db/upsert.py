# ============================================================================
# FILE: app/db/upsert.py
# INSERT ... ON CONFLICT DO NOTHING for the dialects we run on
# ============================================================================
from typing import Any, Dict, Type
from sqlalchemy.orm import Session
from sqlalchemy.dialects import postgresql, sqlite

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

def insert_ignore(db: Session, model: Type[Any], values: Dict[str, Any]) -> int:
    """
    Insert a row, silently skipping it if it violates a unique constraint
    Returns the number of rows actually inserted (0 or 1)
    """
    dialect = db.get_bind().dialect.name
    dialect_insert = _DIALECT_INSERTS.get(dialect)
    if dialect_insert is None:
        raise NotImplementedError(f"ON CONFLICT DO NOTHING is not supported on {dialect}")

    stmt = dialect_insert(model).values(**values).on_conflict_do_nothing()
    result = db.execute(stmt)
    return result.rowcount or 0

"""Column types that behave the same on PostgreSQL and the SQLite test database."""
from __future__ import annotations

import uuid

from sqlalchemy.dialects.postgresql import JSONB as PGJSONB
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.dialects.sqlite import JSON as SQLiteJSON
from sqlalchemy.types import String, TypeDecorator


def JSONBType(**kwargs):
    """JSONB on PostgreSQL, plain JSON text on SQLite."""
    return PGJSONB(**kwargs).with_variant(SQLiteJSON(), "sqlite")


class GUID(TypeDecorator):
    """UUID column; native on PostgreSQL, 36-char string on SQLite.

    Accepts ``uuid.UUID`` or its string form on the way in and always hands
    back ``uuid.UUID``.
    """

    impl = PGUUID
    cache_ok = True

    @property
    def python_type(self):
        return uuid.UUID

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PGUUID(as_uuid=True))
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        as_uuid = value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
        return as_uuid if dialect.name == "postgresql" else str(as_uuid)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))

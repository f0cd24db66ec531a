"""Database-agnostic type definitions for SQLAlchemy models.

This module provides type definitions that work with both SQLite and PostgreSQL.
"""
from decimal import Decimal

from sqlalchemy import Numeric
from sqlalchemy.dialects.postgresql import UUID as PG_UUID

# UUID type that works with both databases (CHAR(32) on SQLite)
UUIDType = PG_UUID

# Money columns: fixed-point, two decimal places
MoneyType = Numeric(14, 2)

ZERO = Decimal("0.00")

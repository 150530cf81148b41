"""Profiles model definition using SQLAlchemy Core."""

from sqlalchemy import Column, DateTime, MetaData, Table, Text, text

metadata = MetaData()

profiles = Table(
    "profiles",
    metadata,
    # Identity provider user ID (one profile per account)
    Column("user_id", Text, primary_key=True),
    # Login name, matched case-sensitively
    Column("username", Text, nullable=False, unique=True, index=True),
    # Audit
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=text("NOW()")),
)

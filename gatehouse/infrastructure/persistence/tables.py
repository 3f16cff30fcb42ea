"""SQLAlchemy table definitions - dialect-agnostic (works with SQLite and PostgreSQL)."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    String,
    Table,
    UniqueConstraint,
)

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# USERS TABLE
# ============================================================================
users_table = Table(
    "users",
    metadata,
    Column("id", String, primary_key=True),  # UUID as string
    Column("display_name", String(255), nullable=True),
    Column("email", String(320), nullable=False, default=""),
    Column("avatar_url", String(2048), nullable=False, default=""),
    Column("active", Boolean, nullable=False, default=True),
    Column("default_role", String(64), nullable=False),
    Column("is_anonymous", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)


# ============================================================================
# USER ROLES TABLE
# ============================================================================
user_roles_table = Table(
    "user_roles",
    metadata,
    Column("user_id", String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("role", String(64), nullable=False),
    UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
)

Index("ix_user_roles_user_id", user_roles_table.c.user_id)


# ============================================================================
# LINKED ACCOUNTS TABLE (external identities)
# ============================================================================
linked_accounts_table = Table(
    "linked_accounts",
    metadata,
    Column("id", String, primary_key=True),  # UUID as string
    Column("user_id", String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("provider", String(50), nullable=False),  # "github"
    Column("external_id", String(255), nullable=False),  # GitHub numeric id as string
    Column("created_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("provider", "external_id", name="uq_linked_account_provider_external"),
)

Index("ix_linked_accounts_user_id", linked_accounts_table.c.user_id)


# ============================================================================
# REFRESH TOKENS TABLE
# ============================================================================
refresh_tokens_table = Table(
    "refresh_tokens",
    metadata,
    Column("id", String, primary_key=True),  # UUID as string
    Column("user_id", String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("token_hash", String(64), nullable=False),  # SHA256 hash
    Column("expires_at", DateTime(timezone=True), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("token_hash", name="uq_refresh_tokens_token_hash"),
)

Index("ix_refresh_tokens_user_id", refresh_tokens_table.c.user_id)

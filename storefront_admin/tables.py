"""Tables of the storefront database.

``admin_users`` is the admin roster. The ``auth_*`` tables back the bundled
identity provider, the shop tables are only read for the dashboard overview.
"""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    text,
)

metadata = MetaData()

admin_users = Table(
    "admin_users",
    metadata,
    # Primary key, so concurrent adds of the same user cannot both land.
    Column("id", String(36), primary_key=True),
)

auth_users = Table(
    "auth_users",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), unique=True, index=True),
    Column("password_hash", String(255), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

auth_sessions = Table(
    "auth_sessions",
    metadata,
    Column("session_id", String(64), primary_key=True),
    Column(
        "user_id",
        ForeignKey("auth_users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    # ISO-8601, compared against the JWT claim
    Column("expires", String(32), nullable=False),
)

password_reset_requests = Table(
    "password_reset_requests",
    metadata,
    Column("token", String(64), primary_key=True),
    Column("email", String(255), nullable=False, index=True),
    Column("redirect_to", Text()),
    Column("requested_at", DateTime(timezone=True), nullable=False),
)

products = Table(
    "products",
    metadata,
    Column("id", Integer(), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("price", Numeric(12, 2), nullable=False, server_default=text("0")),
)

orders = Table(
    "orders",
    metadata,
    Column("id", Integer(), primary_key=True),
    Column("user_id", String(36), index=True),
    Column("status", String(32), nullable=False, server_default=text("'pending'")),
    Column("total_amount", Numeric(12, 2)),
)

profiles = Table(
    "profiles",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("full_name", String(255)),
)

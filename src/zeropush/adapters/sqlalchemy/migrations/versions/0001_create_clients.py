"""Create the clients ledger table.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from zeropush.adapters.sqlalchemy.mappings import LEDGER_SCHEMA

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _ledger_schema() -> str | None:
    translate_map = op.get_bind().get_execution_options().get("schema_translate_map") or {}
    return translate_map.get(LEDGER_SCHEMA)


def upgrade() -> None:
    bind = op.get_bind()
    schema = _ledger_schema()
    if schema is not None and bind.dialect.name == "postgresql":
        op.execute(sa.schema.CreateSchema(schema, if_not_exists=True))

    # zero-cache creates and owns the table when it shares the database.
    if sa.inspect(bind).has_table("clients", schema=schema):
        return

    op.create_table(
        "clients",
        sa.Column("clientGroupID", sa.String(), nullable=False),
        sa.Column("clientID", sa.String(), nullable=False),
        sa.Column("lastMutationID", sa.BigInteger(), server_default="0", nullable=False),
        sa.Column("userID", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("clientGroupID", "clientID", name=op.f("pk_clients")),
        schema=LEDGER_SCHEMA,
    )


def downgrade() -> None:
    op.drop_table("clients", schema=LEDGER_SCHEMA)

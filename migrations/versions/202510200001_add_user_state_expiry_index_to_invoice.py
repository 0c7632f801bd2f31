"""Add a composite index for the overdue reconciliation lookup."""

import sqlalchemy as sa
from alembic import op


def _has_index(table_name: str, index_name: str, bind) -> bool:
    inspector = sa.inspect(bind)
    return any(ix["name"] == index_name for ix in inspector.get_indexes(table_name))


# revision identifiers, used by Alembic.
revision = "202510200001"
down_revision = "202510190001"
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    if _has_index("invoice", "ix_invoice_user_state_expiry", bind):
        return
    op.create_index(
        "ix_invoice_user_state_expiry",
        "invoice",
        ["user_id", "state", "expiry_date"],
    )


def downgrade():
    bind = op.get_bind()
    if not _has_index("invoice", "ix_invoice_user_state_expiry", bind):
        return
    op.drop_index("ix_invoice_user_state_expiry", table_name="invoice")

"""Create user, invoice and setting tables."""

import sqlalchemy as sa
from alembic import op


def _has_table(table_name: str, bind) -> bool:
    inspector = sa.inspect(bind)
    return inspector.has_table(table_name)


# revision identifiers, used by Alembic.
revision = "202510190001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()

    if not _has_table("user", bind):
        op.create_table(
            "user",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("email", sa.String(length=120), nullable=False, unique=True),
            sa.Column("password", sa.String(length=255), nullable=False),
            sa.Column("first_name", sa.String(length=100), nullable=False),
            sa.Column("last_name", sa.String(length=100), nullable=False),
            sa.Column(
                "active", sa.Boolean(), nullable=False, server_default=sa.text("1")
            ),
            sa.Column(
                "created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()
            ),
        )

    if not _has_table("setting", bind):
        op.create_table(
            "setting",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=50), nullable=False, unique=True),
            sa.Column("value", sa.String(length=255), nullable=True),
        )

    if _has_table("invoice", bind):
        return

    op.create_table(
        "invoice",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("buyer_name", sa.String(length=255), nullable=False),
        sa.Column("phone_number", sa.String(length=20), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column(
            "state",
            sa.Enum(
                "sent",
                "paid",
                "overdue",
                name="invoice_state",
                native_enum=False,
                create_constraint=True,
            ),
            nullable=False,
            server_default="sent",
        ),
        sa.Column(
            "created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["user.id"], name="fk_invoice_user_id", ondelete="CASCADE"
        ),
    )
    op.create_index("ix_invoice_buyer_name", "invoice", ["buyer_name"])
    op.create_index("ix_invoice_state", "invoice", ["state"])
    op.create_index("ix_invoice_expiry_date", "invoice", ["expiry_date"])
    op.create_index("ix_invoice_user_state", "invoice", ["user_id", "state"])
    op.create_index("ix_invoice_user_expiry", "invoice", ["user_id", "expiry_date"])


def downgrade():
    bind = op.get_bind()
    if _has_table("invoice", bind):
        op.drop_index("ix_invoice_user_expiry", table_name="invoice")
        op.drop_index("ix_invoice_user_state", table_name="invoice")
        op.drop_index("ix_invoice_expiry_date", table_name="invoice")
        op.drop_index("ix_invoice_state", table_name="invoice")
        op.drop_index("ix_invoice_buyer_name", table_name="invoice")
        op.drop_table("invoice")
    if _has_table("setting", bind):
        op.drop_table("setting")
    if _has_table("user", bind):
        op.drop_table("user")

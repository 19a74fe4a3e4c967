"""billing ledger: stays, bill types, payments, slips, incomes, expenses

Revision ID: 0001_billing_ledger
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


revision = "0001_billing_ledger"
down_revision = None
branch_labels = None
depends_on = None

stay_status = sa.Enum("checked_in", "active", "checked_out", name="stay_status")
payment_status = sa.Enum("unpaid", "processing", "paid", name="payment_status")
income_category = sa.Enum("room", "other", name="income_category")
income_source = sa.Enum("payment", "manual", name="income_source")


def _base_columns():
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("user_name", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)

    op.create_table(
        "rooms",
        *_base_columns(),
        sa.Column("room_num", sa.String(50), nullable=False),
        sa.Column("room_price", sa.Numeric(12, 2), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("room_num"),
    )
    op.create_index(op.f("ix_rooms_id"), "rooms", ["id"], unique=False)

    op.create_table(
        "stays",
        *_base_columns(),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("room_id", sa.Uuid(), nullable=False),
        sa.Column("room_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("stay_date", sa.Date(), nullable=False),
        sa.Column("stay_dateout", sa.Date(), nullable=True),
        sa.Column("stay_status", stay_status, nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["room_id"], ["rooms.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_stays_id"), "stays", ["id"], unique=False)
    op.create_index(op.f("ix_stays_user_id"), "stays", ["user_id"], unique=False)
    op.create_index(op.f("ix_stays_room_id"), "stays", ["room_id"], unique=False)
    op.create_index(op.f("ix_stays_stay_status"), "stays", ["stay_status"], unique=False)

    op.create_table(
        "bill_types",
        *_base_columns(),
        sa.Column("billtype_no", sa.Integer(), nullable=True),
        sa.Column("bill_type", sa.String(100), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("billtype_no"),
    )
    op.create_index(op.f("ix_bill_types_id"), "bill_types", ["id"], unique=False)

    op.create_table(
        "payments",
        *_base_columns(),
        sa.Column("stay_id", sa.Uuid(), nullable=False),
        sa.Column("admin_id", sa.Uuid(), nullable=False),
        sa.Column("billing_period", sa.String(7), nullable=False),
        sa.Column("water_units", sa.Numeric(12, 2), nullable=False),
        sa.Column("ele_units", sa.Numeric(12, 2), nullable=False),
        sa.Column("water_unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("ele_unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("room_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("other_charge", sa.Numeric(12, 2), nullable=False),
        sa.Column("other_description", sa.Text(), nullable=True),
        sa.Column("total", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("status", payment_status, nullable=False),
        sa.Column("paid_at", sa.DateTime(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["stay_id"], ["stays.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("stay_id", "billing_period", name="uq_payments_stay_period"),
    )
    op.create_index(op.f("ix_payments_id"), "payments", ["id"], unique=False)
    op.create_index(op.f("ix_payments_stay_id"), "payments", ["stay_id"], unique=False)
    op.create_index(op.f("ix_payments_billing_period"), "payments", ["billing_period"], unique=False)
    op.create_index(op.f("ix_payments_payment_date"), "payments", ["payment_date"], unique=False)
    op.create_index(op.f("ix_payments_status"), "payments", ["status"], unique=False)

    op.create_table(
        "payment_slips",
        *_base_columns(),
        sa.Column("payment_id", sa.Uuid(), nullable=False),
        sa.Column("stay_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("slip_url", sa.String(1000), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["payment_id"], ["payments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_payment_slips_id"), "payment_slips", ["id"], unique=False)
    op.create_index(op.f("ix_payment_slips_payment_id"), "payment_slips", ["payment_id"], unique=False)
    op.create_index(op.f("ix_payment_slips_stay_id"), "payment_slips", ["stay_id"], unique=False)

    op.create_table(
        "incomes",
        *_base_columns(),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("income_date", sa.Date(), nullable=False),
        sa.Column("category", income_category, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("source", income_source, nullable=False),
        sa.Column("payment_id", sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(["payment_id"], ["payments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("payment_id", "category", name="uq_incomes_payment_category"),
    )
    op.create_index(op.f("ix_incomes_id"), "incomes", ["id"], unique=False)
    op.create_index(op.f("ix_incomes_income_date"), "incomes", ["income_date"], unique=False)
    op.create_index(op.f("ix_incomes_category"), "incomes", ["category"], unique=False)
    op.create_index(op.f("ix_incomes_payment_id"), "incomes", ["payment_id"], unique=False)

    op.create_table(
        "expenses",
        *_base_columns(),
        sa.Column("expense_type", sa.String(100), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("expense_date", sa.Date(), nullable=False),
        sa.Column("admin_id", sa.Uuid(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_expenses_id"), "expenses", ["id"], unique=False)
    op.create_index(op.f("ix_expenses_expense_type"), "expenses", ["expense_type"], unique=False)
    op.create_index(op.f("ix_expenses_expense_date"), "expenses", ["expense_date"], unique=False)


def downgrade() -> None:
    op.drop_table("expenses")
    op.drop_table("incomes")
    op.drop_table("payment_slips")
    op.drop_table("payments")
    op.drop_table("bill_types")
    op.drop_table("stays")
    op.drop_table("rooms")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (income_source, income_category, payment_status, stay_status):
        enum_type.drop(bind, checkfirst=True)

"""initial cash ledger schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00
"""
from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

INCOME_SOURCES = (
    "Tithe", "Offering", "First Fruits", "Donation",
    "Event", "Cafeteria", "Other",
)
OUTCOME_CATEGORIES = ("Fixed", "Variable", "Other")


def upgrade() -> None:
    op.create_table(
        "cash_accounts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("balance", sa.Numeric(15, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "denomination_counts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "account_id",
            sa.Integer(),
            sa.ForeignKey("cash_accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("denomination_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.UniqueConstraint(
            "account_id", "denomination_value",
            name="uq_denomination_per_account",
        ),
    )
    op.create_index(
        "ix_denomination_counts_account_id",
        "denomination_counts", ["account_id"],
    )

    op.create_table(
        "incomes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "account_id", sa.Integer(),
            sa.ForeignKey("cash_accounts.id"), nullable=False,
        ),
        sa.Column("period_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column(
            "source",
            sa.Enum(
                *INCOME_SOURCES,
                name="income_source_enum",
                create_constraint=True,
            ),
            nullable=False,
        ),
        sa.Column("counterparty_id", sa.Integer(), nullable=True),
    )
    op.create_index("ix_incomes_account_id", "incomes", ["account_id"])
    op.create_index("ix_incomes_period_id", "incomes", ["period_id"])
    op.create_index(
        "ix_incomes_counterparty_id", "incomes", ["counterparty_id"]
    )

    op.create_table(
        "outcomes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "account_id", sa.Integer(),
            sa.ForeignKey("cash_accounts.id"), nullable=False,
        ),
        sa.Column("period_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column(
            "category",
            sa.Enum(
                *OUTCOME_CATEGORIES,
                name="outcome_category_enum",
                create_constraint=True,
            ),
            nullable=False,
        ),
    )
    op.create_index("ix_outcomes_account_id", "outcomes", ["account_id"])
    op.create_index("ix_outcomes_period_id", "outcomes", ["period_id"])

    op.create_table(
        "period_aggregates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("period_id", sa.Integer(), nullable=False, unique=True),
        sa.Column("total_income", sa.Numeric(15, 2), nullable=False),
        sa.Column("total_outcome", sa.Numeric(15, 2), nullable=False),
        sa.Column("net_balance", sa.Numeric(15, 2), nullable=False),
        sa.Column("computed_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("period_aggregates")
    op.drop_index("ix_outcomes_period_id", table_name="outcomes")
    op.drop_index("ix_outcomes_account_id", table_name="outcomes")
    op.drop_table("outcomes")
    op.drop_index("ix_incomes_counterparty_id", table_name="incomes")
    op.drop_index("ix_incomes_period_id", table_name="incomes")
    op.drop_index("ix_incomes_account_id", table_name="incomes")
    op.drop_table("incomes")
    op.drop_index(
        "ix_denomination_counts_account_id", table_name="denomination_counts"
    )
    op.drop_table("denomination_counts")
    op.drop_table("cash_accounts")
    sa.Enum(name="outcome_category_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="income_source_enum").drop(op.get_bind(), checkfirst=True)

"""initial schema: compensation_data and rate_limits

Revision ID: 0001
Revises:
Create Date: 2025-10-20

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "compensation_data",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("anonymous_id", sa.Uuid(), nullable=False, unique=True),
        sa.Column("job_title", sa.String(), nullable=False),
        sa.Column("industry", sa.String(), nullable=False),
        sa.Column("experience_level", sa.String(), nullable=False),
        sa.Column("company_size", sa.String(), nullable=False),
        sa.Column("city", sa.String(), nullable=False),
        sa.Column("country", sa.String(), nullable=False, server_default="Romania"),
        sa.Column("gross_salary", sa.Numeric(12, 2), nullable=False),
        sa.Column("net_salary", sa.Numeric(12, 2), nullable=False),
        sa.Column("has_meal_vouchers", sa.Boolean(), nullable=True),
        sa.Column("meal_vouchers_value", sa.Numeric(8, 2), nullable=True),
        sa.Column("has_health_insurance", sa.Boolean(), nullable=True),
        sa.Column("has_life_insurance", sa.Boolean(), nullable=True),
        sa.Column("contract_type", sa.String(), nullable=True),
        sa.Column("work_model", sa.String(), nullable=True),
        sa.Column("schedule", sa.String(), nullable=True),
        sa.Column("paid_leave_days", sa.Integer(), nullable=True),
        sa.Column("tenure_years", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_compensation_data_experience_level", "compensation_data", ["experience_level"]
    )
    op.create_index("ix_compensation_data_city", "compensation_data", ["city"])

    op.create_table(
        "rate_limits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("identity", sa.String(255), nullable=False),
        sa.Column("endpoint", sa.String(100), nullable=False),
        sa.Column("request_count", sa.Integer(), nullable=False),
        sa.Column("window_start", sa.DateTime(), nullable=False),
        sa.Column("last_request_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "identity", "endpoint", name="uq_rate_limits_identity_endpoint"
        ),
    )
    op.create_index("ix_rate_limits_window_start", "rate_limits", ["window_start"])


def downgrade() -> None:
    op.drop_index("ix_rate_limits_window_start", table_name="rate_limits")
    op.drop_table("rate_limits")
    op.drop_index("ix_compensation_data_city", table_name="compensation_data")
    op.drop_index("ix_compensation_data_experience_level", table_name="compensation_data")
    op.drop_table("compensation_data")

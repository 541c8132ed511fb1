"""가격 알림: alerts, base_price_alerts

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # ── alerts ──
    op.create_table(
        "alerts",
        sa.Column("alert_id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("alert_type", sa.String(20), nullable=False),
        sa.Column("user_id", sa.String(40), nullable=False),
        sa.Column("market", sa.String(20), nullable=False),
        sa.Column("book", sa.String(11), nullable=False),
        sa.Column("is_greater_than", sa.Boolean(), nullable=False),
        sa.Column("price", sa.Numeric(24, 10), nullable=False),
        sa.Column(
            "created_on",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("triggered_on", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("alert_type <> ''", name="alerts_alert_type_is_not_empty"),
        sa.CheckConstraint(
            "market ~ '^[A-Z]{3,20}$'",
            name="alerts_market_is_formatted_properly",
        ),
        sa.CheckConstraint(
            "book ~ '^[A-Z]{3,5}_[A-Z]{3,5}$'",
            name="alerts_book_is_formatted_properly",
        ),
        sa.CheckConstraint("price > 0", name="alerts_price_greater_than_0"),
    )
    op.create_index("alerts_user_id_index", "alerts", ["user_id"])
    op.create_index("alerts_created_on_index", "alerts", ["created_on"])
    op.create_index("alerts_triggered_on_index", "alerts", ["triggered_on"])
    op.create_index("alerts_price_index", "alerts", ["price"])

    # ── base_price_alerts ──
    # 기준가(매입가): 알림 메시지 개인화에만 사용
    op.create_table(
        "base_price_alerts",
        sa.Column(
            "alert_id",
            sa.BigInteger(),
            sa.ForeignKey("alerts.alert_id"),
            primary_key=True,
        ),
        sa.Column("base_price", sa.Numeric(24, 10), nullable=False),
        sa.CheckConstraint(
            "base_price > 0",
            name="base_price_alerts_base_price_greater_than_0",
        ),
    )


def downgrade() -> None:
    op.drop_table("base_price_alerts")
    op.drop_index("alerts_price_index", table_name="alerts")
    op.drop_index("alerts_triggered_on_index", table_name="alerts")
    op.drop_index("alerts_created_on_index", table_name="alerts")
    op.drop_index("alerts_user_id_index", table_name="alerts")
    op.drop_table("alerts")

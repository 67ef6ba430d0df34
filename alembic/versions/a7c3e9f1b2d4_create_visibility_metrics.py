"""create_visibility_metrics

Revision ID: a7c3e9f1b2d4
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "a7c3e9f1b2d4"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "visibility_metrics",
        sa.Column("brand_id", sa.String(length=100), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("geo_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("brand_mentions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("competitor_mentions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("overall_presence", sa.Float(), nullable=False, server_default="0"),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("brand_id"),
    )


def downgrade() -> None:
    op.drop_table("visibility_metrics")

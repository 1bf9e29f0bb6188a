"""Backfill is_pass_locked from legacy deal tier

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

가져온 레거시 딜 데이터의 tier 를 소문자로 정규화하고,
멤버 전용 tier 딜은 is_pass_locked = true 로 설정합니다.
"""
from alembic import op
import sqlalchemy as sa

from rise_local.services.deal_access import MEMBER_ONLY_TIERS

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        "UPDATE deals SET tier = NULLIF(LOWER(TRIM(tier)), '') WHERE tier IS NOT NULL"
    )
    op.execute(
        sa.text(
            "UPDATE deals SET is_pass_locked = :locked WHERE tier IN :tiers"
        ).bindparams(
            sa.bindparam('locked', True),
            sa.bindparam('tiers', sorted(MEMBER_ONLY_TIERS), expanding=True),
        )
    )


def downgrade() -> None:
    # tier 원본 대소문자는 복구할 수 없으므로 잠금 값만 유지
    pass

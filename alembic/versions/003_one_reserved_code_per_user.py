"""One reserved deal code per user and deal

Revision ID: 003
Revises: 002
Create Date: 2026-10-19

같은 사용자의 동시 발급 요청이 코드를 두 개 선점하지 못하도록
(deal_id, assigned_to_user_id) 부분 유니크 인덱스를 추가합니다.
기존 중복 RESERVED 코드는 가장 최근 것만 남기고 EXPIRED 로 정리합니다.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '003'
down_revision = '002'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        """
        UPDATE deal_codes SET status = 'EXPIRED'
        WHERE status = 'RESERVED'
          AND EXISTS (
              SELECT 1 FROM deal_codes newer
              WHERE newer.deal_id = deal_codes.deal_id
                AND newer.assigned_to_user_id = deal_codes.assigned_to_user_id
                AND newer.status = 'RESERVED'
                AND (newer.reserved_at > deal_codes.reserved_at
                     OR (newer.reserved_at = deal_codes.reserved_at
                         AND newer.id > deal_codes.id))
          )
        """
    )
    op.create_index(
        'uq_deal_codes_one_reserved_per_user',
        'deal_codes',
        ['deal_id', 'assigned_to_user_id'],
        unique=True,
        postgresql_where=sa.text("status = 'RESERVED'"),
        sqlite_where=sa.text("status = 'RESERVED'"),
    )


def downgrade() -> None:
    op.drop_index('uq_deal_codes_one_reserved_per_user', table_name='deal_codes')

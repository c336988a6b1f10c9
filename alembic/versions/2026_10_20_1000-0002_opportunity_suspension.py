"""opportunity_suspension

Revision ID: 0002_opportunity_suspension
Revises: 0001_initial
Create Date: 2026-10-20 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0002_opportunity_suspension'
down_revision = '0001_initial'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column('opportunities', sa.Column('suspended_at', sa.DateTime(), nullable=True))
    op.add_column(
        'opportunities',
        sa.Column('suspended_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
    )
    op.add_column('opportunities', sa.Column('suspension_reason', sa.Text(), nullable=True))
    op.add_column('opportunities', sa.Column('previous_status', sa.String(length=20), nullable=True))
    op.add_column('opportunities', sa.Column('resumed_at', sa.DateTime(), nullable=True))
    op.add_column(
        'opportunities',
        sa.Column('resumed_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
    )


def downgrade() -> None:
    op.drop_column('opportunities', 'resumed_by')
    op.drop_column('opportunities', 'resumed_at')
    op.drop_column('opportunities', 'previous_status')
    op.drop_column('opportunities', 'suspension_reason')
    op.drop_column('opportunities', 'suspended_by')
    op.drop_column('opportunities', 'suspended_at')

"""create high_scores with range checks and duplicate-window guard

Revision ID: 1a7c3e9d2b10
Revises:
Create Date: 2025-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1a7c3e9d2b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'high_scores' in set(insp.get_table_names()):
        return

    op.create_table(
        'high_scores',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=20), nullable=False, server_default='Anonymous'),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('level_reached', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('identity_hash', sa.String(length=64), nullable=False),
        sa.Column('submit_window', sa.BigInteger(), nullable=False),
        sa.CheckConstraint('score >= 0 AND score <= 999999', name='ck_high_scores_score_range'),
        sa.CheckConstraint('level_reached >= 1 AND level_reached <= 100', name='ck_high_scores_level_range'),
        sa.UniqueConstraint('identity_hash', 'submit_window', name='uq_high_scores_identity_window'),
    )
    with op.batch_alter_table('high_scores') as batch_op:
        batch_op.create_index('ix_high_scores_identity_hash', ['identity_hash'])
        batch_op.create_index('ix_high_scores_ranking', ['score', 'created_at'])


def downgrade():
    with op.batch_alter_table('high_scores') as batch_op:
        batch_op.drop_index('ix_high_scores_ranking')
        batch_op.drop_index('ix_high_scores_identity_hash')
    op.drop_table('high_scores')

"""add difficulty to score; ranking index

Revision ID: 9d2e6b5a81c4
Revises: 4c7a1e9b2f30
Create Date: 2025-09-09 16:40:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '9d2e6b5a81c4'
down_revision = '4c7a1e9b2f30'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    cols = {c['name'] for c in insp.get_columns('score')}
    indexes = {i['name'] for i in insp.get_indexes('score')}

    with op.batch_alter_table('score') as batch_op:
        if 'difficulty' not in cols:
            batch_op.add_column(sa.Column('difficulty', sa.String(length=16), nullable=True))
    # Rows saved before difficulty existed were played on the default level
    op.execute("UPDATE score SET difficulty = 'average' WHERE difficulty IS NULL")
    with op.batch_alter_table('score') as batch_op:
        batch_op.alter_column('difficulty', existing_type=sa.String(length=16), nullable=False)

    if 'ix_score_ranking' not in indexes:
        op.create_index('ix_score_ranking', 'score', ['score', 'time_remaining'], unique=False)


def downgrade():
    op.drop_index('ix_score_ranking', table_name='score')
    with op.batch_alter_table('score') as batch_op:
        batch_op.drop_column('difficulty')

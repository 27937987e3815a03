"""add allowed_embed_domains to quiz

Revision ID: 20261017_2
Revises: 20261017_1
Create Date: 2026-10-17 00:10:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20261017_2'
down_revision = '20261017_1'
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table('quiz') as batch_op:
        batch_op.add_column(sa.Column('allowed_embed_domains', sa.JSON(), nullable=True))

    # Existing quizzes stay unrestricted
    conn = op.get_bind()
    conn.execute(sa.text("UPDATE quiz SET allowed_embed_domains = '[]' WHERE allowed_embed_domains IS NULL"))

    with op.batch_alter_table('quiz') as batch_op:
        batch_op.alter_column('allowed_embed_domains', existing_type=sa.JSON(), nullable=False)


def downgrade():
    with op.batch_alter_table('quiz') as batch_op:
        batch_op.drop_column('allowed_embed_domains')

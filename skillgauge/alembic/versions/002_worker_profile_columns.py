"""Add optional worker profile columns

Revision ID: 002
Revises: 001
Create Date: 2025-03-02 10:30:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None

NEW_COLUMNS = [
    ('first_name_th', sa.String(100)),
    ('last_name_th', sa.String(100)),
    ('birth_date', sa.String(10)),
    ('gender', sa.String(20)),
    ('email', sa.String(255)),
    ('address_on_id', sa.Text()),
    ('current_address', sa.Text()),
    ('position', sa.String(100)),
    ('contract_type', sa.String(50)),
    ('start_date', sa.String(10)),
]


def upgrade():
    with op.batch_alter_table('workers') as batch_op:
        for name, type_ in NEW_COLUMNS:
            batch_op.add_column(sa.Column(name, type_, nullable=True))


def downgrade():
    with op.batch_alter_table('workers') as batch_op:
        for name, _ in reversed(NEW_COLUMNS):
            batch_op.drop_column(name)

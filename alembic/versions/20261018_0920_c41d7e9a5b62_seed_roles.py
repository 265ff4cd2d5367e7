"""seed_roles

Revision ID: c41d7e9a5b62
Revises: 8b2e4d6f0a31
Create Date: 2026-10-18 09:20:00

"""
from typing import Sequence, Union

from alembic import op

revision: str = 'c41d7e9a5b62'
down_revision: Union[str, None] = '8b2e4d6f0a31'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        INSERT INTO roles (id, slug, name)
        VALUES
            (gen_random_uuid(), 'admin',     'Administrator'),
            (gen_random_uuid(), 'exhibitor', 'Exhibitor'),
            (gen_random_uuid(), 'visitor',   'Visitor')
        ON CONFLICT (slug) DO NOTHING;
    """)


def downgrade() -> None:
    op.execute("DELETE FROM roles WHERE slug IN ('admin', 'exhibitor', 'visitor')")

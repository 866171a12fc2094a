"""001: create addresses, delivery_partners and delivery_providers

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE addresses (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            full_name       VARCHAR(200)    NOT NULL,
            phone           VARCHAR(32)     NOT NULL,
            division        VARCHAR(100)    NOT NULL DEFAULT '',
            district        VARCHAR(100)    NOT NULL DEFAULT '',
            thana           VARCHAR(100)    NOT NULL DEFAULT '',
            address_line    TEXT            NOT NULL DEFAULT '',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("""
        CREATE TABLE delivery_partners (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            name            VARCHAR(200)    NOT NULL,
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("""
        CREATE TABLE delivery_providers (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            name            VARCHAR(200)    NOT NULL,
            provider_type   VARCHAR(32)     NOT NULL,
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_delivery_providers_type CHECK (
                provider_type IN ('pathao', 'steadfast', 'redx', 'paperfly', 'ecourier', 'deliverytiger')
            )
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS delivery_providers;")
    op.execute("DROP TABLE IF EXISTS delivery_partners;")
    op.execute("DROP TABLE IF EXISTS addresses;")

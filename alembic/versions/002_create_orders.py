"""002: create orders, order_items and order_fraud_flags, with the updated_at trigger

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE orders (
            id                      UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            order_number            VARCHAR(32)     NOT NULL,
            status                  VARCHAR(20)     NOT NULL DEFAULT 'pending',
            subtotal                NUMERIC(12, 2)  NOT NULL,
            shipping_cost           NUMERIC(12, 2)  NOT NULL DEFAULT 0,
            total                   NUMERIC(12, 2)  NOT NULL,
            payment_method          VARCHAR(32)     NOT NULL,
            payment_transaction_id  VARCHAR(100),
            address_id              UUID            REFERENCES addresses(id),
            delivery_partner_id     UUID            REFERENCES delivery_partners(id),
            tracking_number         VARCHAR(100),
            notes                   TEXT,
            is_preorder             BOOLEAN         NOT NULL DEFAULT FALSE,
            fraud_score             NUMERIC(6, 2),
            is_flagged              BOOLEAN,
            shipped_at              TIMESTAMPTZ,
            delivered_at            TIMESTAMPTZ,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_orders_order_number UNIQUE (order_number),
            CONSTRAINT ck_orders_status CHECK (
                status IN ('pending', 'confirmed', 'processing', 'shipped', 'delivered', 'cancelled')
            ),
            CONSTRAINT ck_orders_amounts CHECK (subtotal >= 0 AND shipping_cost >= 0 AND total >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_orders_created_at ON orders (created_at DESC);")
    op.execute("CREATE INDEX idx_orders_status_created ON orders (status, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)

    # No cascade: line items must be deleted before their order.
    op.execute("""
        CREATE TABLE order_items (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            order_id        UUID            NOT NULL REFERENCES orders(id),
            product_name    VARCHAR(300)    NOT NULL,
            product_price   NUMERIC(12, 2)  NOT NULL,
            quantity        INT             NOT NULL,
            is_preorder     BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_order_items_quantity CHECK (quantity > 0)
        );
    """)
    op.execute("CREATE INDEX idx_order_items_order_id ON order_items (order_id);")

    op.execute("""
        CREATE TABLE order_fraud_flags (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            order_id        UUID            NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
            flag_type       VARCHAR(50)     NOT NULL,
            flag_reason     TEXT            NOT NULL,
            severity        VARCHAR(20)     NOT NULL,
            is_resolved     BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute(
        "CREATE INDEX idx_order_fraud_flags_open ON order_fraud_flags (order_id) "
        "WHERE is_resolved = FALSE;"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS order_fraud_flags;")
    op.execute("DROP TABLE IF EXISTS order_items;")
    op.execute("DROP TRIGGER IF EXISTS trg_orders_updated_at ON orders;")
    op.execute("DROP TABLE IF EXISTS orders;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")

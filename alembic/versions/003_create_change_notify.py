"""003: publish order and line-item changes on the storefront_changes channel

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Payload carries only the event kind and table; listeners re-query.
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_notify_change()
        RETURNS TRIGGER AS $$
        BEGIN
            PERFORM pg_notify(
                'storefront_changes',
                json_build_object('event', TG_OP, 'table', TG_TABLE_NAME)::text
            );
            RETURN NULL;
        END;
        $$ LANGUAGE plpgsql;
    """)
    for table in ("orders", "order_items"):
        op.execute(f"""
            CREATE TRIGGER trg_{table}_notify
                AFTER INSERT OR UPDATE OR DELETE ON {table}
                FOR EACH ROW EXECUTE FUNCTION fn_notify_change();
        """)


def downgrade() -> None:
    for table in ("orders", "order_items"):
        op.execute(f"DROP TRIGGER IF EXISTS trg_{table}_notify ON {table};")
    op.execute("DROP FUNCTION IF EXISTS fn_notify_change();")

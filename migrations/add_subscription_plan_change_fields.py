"""
Add plan change tracking fields to subscriptions table

Migration to add:
- cancel_at_period_end
- pending_plan_change (downgrade applied on the next renewal)
- pending_plan_change_date

Run with: python migrations/add_subscription_plan_change_fields.py
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import text

from bikeregistry.database import engine


def upgrade():
    """Add plan change tracking fields"""
    with engine.connect() as conn:
        # Check if columns already exist to make migration idempotent
        result = conn.execute(text("""
            SELECT column_name
            FROM information_schema.columns
            WHERE table_name = 'subscriptions'
            AND column_name IN ('cancel_at_period_end', 'pending_plan_change', 'pending_plan_change_date')
        """))
        existing_columns = {row[0] for row in result}

        if "cancel_at_period_end" not in existing_columns:
            conn.execute(text("""
                ALTER TABLE subscriptions
                ADD COLUMN cancel_at_period_end BOOLEAN NOT NULL DEFAULT FALSE
            """))
            print("✅ Added cancel_at_period_end column")
        else:
            print("ℹ️  cancel_at_period_end column already exists")

        if "pending_plan_change" not in existing_columns:
            conn.execute(text("""
                ALTER TABLE subscriptions
                ADD COLUMN pending_plan_change VARCHAR(20)
            """))
            print("✅ Added pending_plan_change column")
        else:
            print("ℹ️  pending_plan_change column already exists")

        if "pending_plan_change_date" not in existing_columns:
            conn.execute(text("""
                ALTER TABLE subscriptions
                ADD COLUMN pending_plan_change_date TIMESTAMP
            """))
            print("✅ Added pending_plan_change_date column")
        else:
            print("ℹ️  pending_plan_change_date column already exists")

        conn.commit()
        print("\n✅ Migration completed successfully!")


def downgrade():
    """Remove plan change tracking fields"""
    with engine.connect() as conn:
        conn.execute(text("ALTER TABLE subscriptions DROP COLUMN IF EXISTS cancel_at_period_end"))
        conn.execute(text("ALTER TABLE subscriptions DROP COLUMN IF EXISTS pending_plan_change"))
        conn.execute(text("ALTER TABLE subscriptions DROP COLUMN IF EXISTS pending_plan_change_date"))
        conn.commit()
        print("✅ Migration rolled back successfully!")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Manage subscription plan change fields migration")
    parser.add_argument("--down", action="store_true", help="Rollback the migration")
    args = parser.parse_args()

    if args.down:
        print("Rolling back migration...")
        downgrade()
    else:
        print("Running migration...")
        upgrade()

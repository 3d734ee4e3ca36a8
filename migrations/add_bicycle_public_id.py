"""
Add public_id to bicycles table

Public verification links and QR codes use a random UUID instead of the
sequential registration ID. Existing rows are backfilled.

Run with: python migrations/add_bicycle_public_id.py
"""

import sys
import uuid
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import text

from bikeregistry.database import engine


def upgrade():
    """Add and backfill bicycles.public_id"""
    with engine.connect() as conn:
        result = conn.execute(text("""
            SELECT column_name
            FROM information_schema.columns
            WHERE table_name = 'bicycles'
            AND column_name = 'public_id'
        """))
        if result.first():
            print("ℹ️  public_id column already exists")
        else:
            conn.execute(text("ALTER TABLE bicycles ADD COLUMN public_id VARCHAR(36)"))
            print("✅ Added public_id column")

        rows = conn.execute(text("SELECT id FROM bicycles WHERE public_id IS NULL")).fetchall()
        for row in rows:
            conn.execute(
                text("UPDATE bicycles SET public_id = :public_id WHERE id = :id"),
                {"public_id": str(uuid.uuid4()), "id": row[0]},
            )
        print(f"✅ Backfilled public_id for {len(rows)} bicycles")

        conn.execute(text("""
            CREATE UNIQUE INDEX IF NOT EXISTS ix_bicycles_public_id
            ON bicycles (public_id)
        """))
        print("✅ Created unique index on public_id")

        conn.commit()
        print("\n✅ Migration completed successfully!")


def downgrade():
    """Remove bicycles.public_id"""
    with engine.connect() as conn:
        conn.execute(text("DROP INDEX IF EXISTS ix_bicycles_public_id"))
        conn.execute(text("ALTER TABLE bicycles DROP COLUMN IF EXISTS public_id"))
        conn.commit()
        print("✅ Migration rolled back successfully!")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Manage bicycle public_id migration")
    parser.add_argument("--down", action="store_true", help="Rollback the migration")
    args = parser.parse_args()

    if args.down:
        print("Rolling back migration...")
        downgrade()
    else:
        print("Running migration...")
        upgrade()

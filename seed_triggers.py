#!/usr/bin/env python3
"""
Supaprofile Trigger Seeding Script

Installs the database functions and triggers that keep public.profile in
step with Supabase's auth.users table. Run once after `alembic upgrade head`.
Safe to run again: every statement is CREATE OR REPLACE.

Usage:
    python seed_triggers.py          # Install triggers
    python seed_triggers.py --drop   # Remove them
"""

import argparse
import os
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

from supaprofile.triggers import (
    TriggerSetupError,
    install_profile_triggers,
    remove_profile_triggers,
)


def seed_triggers(drop: bool = False) -> int:
    """Install (or drop) the profile triggers. Returns an exit code."""
    load_dotenv()
    if not os.getenv("DATABASE_URL"):
        print("❌ Couldn't find DATABASE_URL (set it in the environment or .env)")
        return 1

    # Imported late so the engine is built from the URL checked above
    from supaprofile.database import engine

    print("🗄️  Supaprofile profile triggers")
    print("=" * 50)
    print(f"   Database: {engine.url.render_as_string(hide_password=True)}")

    try:
        if drop:
            print("\n🗑️  Dropping functions and triggers...")
            names = remove_profile_triggers(engine)
        else:
            print("\n📋 Creating functions and triggers...")
            names = install_profile_triggers(engine)
    except TriggerSetupError as e:
        print(f"\n❌ {e}")
        return 1
    finally:
        engine.dispose()

    for name in names:
        print(f"✓ {name}")

    print("\n" + "=" * 50)
    if drop:
        print("✅ Removed triggers and functions for profile handling.")
    else:
        print("✅ Finished adding triggers and functions for profile handling.")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Install the triggers that sync public.profile with auth.users"
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Remove the triggers and functions instead of creating them"
    )

    args = parser.parse_args()

    sys.exit(seed_triggers(drop=args.drop))


if __name__ == "__main__":
    main()

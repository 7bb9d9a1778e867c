#!/usr/bin/env python3
"""
Supaprofile Profile Management Script

Profiles are created by the auth trigger with the 'user' role. Use this to
grant admin, or to delete an account (the delete trigger also removes the
auth user).

Usage:
    python manage_profiles.py list
    python manage_profiles.py promote <user-id>
    python manage_profiles.py demote <user-id>
    python manage_profiles.py delete <user-id> [--confirm]
"""

import argparse
import sys
import uuid
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from rich.console import Console
from rich.table import Table

from supaprofile.database import (
    Role,
    SessionLocal,
    delete_profile,
    list_profiles,
    set_profile_role,
)

console = Console()


def _parse_id(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a user id: {value}") from None


def show_profiles(db) -> None:
    profiles = list_profiles(db)
    if not profiles:
        console.print("[yellow]No profiles yet.[/yellow] Sign up a user, or check the triggers are installed.")
        return

    table = Table(title="Profiles")
    table.add_column("User ID", style="cyan")
    table.add_column("Role")
    table.add_column("Notes", justify="right")
    for profile in profiles:
        role = f"[bold green]{profile.role.value}[/bold green]" if profile.is_admin else profile.role.value
        table.add_row(str(profile.id), role, str(len(profile.notes)))
    console.print(table)


def change_role(db, user_id: uuid.UUID, role: Role) -> int:
    profile = set_profile_role(db, user_id, role)
    if profile is None:
        console.print(f"[red]❌ No profile with id {user_id}[/red]")
        return 1
    console.print(f"✓ {user_id} is now [bold]{profile.role.value}[/bold]")
    return 0


def remove(db, user_id: uuid.UUID, skip_confirm: bool = False) -> int:
    console.print(f"⚠️  Deleting profile {user_id} also deletes its notes and the auth user.")
    if not skip_confirm:
        response = input("Are you sure you want to continue? (yes/no): ")
        if response.lower() not in ['yes', 'y']:
            console.print("❌ Delete cancelled")
            return 1

    if not delete_profile(db, user_id):
        console.print(f"[red]❌ No profile with id {user_id}[/red]")
        return 1
    console.print(f"✓ Deleted {user_id}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Manage Supaprofile profiles")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List profiles")
    for name, help_text in (("promote", "Give a user the admin role"), ("demote", "Give a user the user role")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("user_id", type=_parse_id)
    delete_cmd = sub.add_parser("delete", help="Delete a profile and its auth user")
    delete_cmd.add_argument("user_id", type=_parse_id)
    delete_cmd.add_argument("--confirm", action="store_true", help="Skip confirmation prompt")

    args = parser.parse_args()

    db = SessionLocal()
    try:
        if args.command == "list":
            show_profiles(db)
            code = 0
        elif args.command == "promote":
            code = change_role(db, args.user_id, Role.admin)
        elif args.command == "demote":
            code = change_role(db, args.user_id, Role.user)
        else:
            code = remove(db, args.user_id, skip_confirm=args.confirm)
    except Exception as e:
        console.print(f"\n[red]❌ Error: {e}[/red]")
        db.rollback()
        code = 1
    finally:
        db.close()

    sys.exit(code)


if __name__ == "__main__":
    main()

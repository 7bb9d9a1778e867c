"""Database triggers keeping ``public.profile`` in step with ``auth.users``.

The auth provider owns ``auth.users``; the application owns ``public.profile``.
These functions and triggers are installed once against the Postgres database
(``python seed_triggers.py``). Every statement is ``CREATE OR REPLACE`` so
running the seeding again is harmless.

- a new auth user gets a profile row with the default role
- deleting a profile deletes the auth user
- deleting an auth user deletes the profile

The two delete triggers fire each other once; the second delete matches no
rows, so the chain stops there.
"""

import logging
from dataclasses import dataclass
from typing import List

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


class TriggerSetupError(RuntimeError):
    """Raised when the profile triggers cannot be installed or removed."""


@dataclass(frozen=True)
class TriggerStatement:
    name: str
    sql: str


INSTALL_STATEMENTS: List[TriggerStatement] = [
    TriggerStatement(
        "function public.handle_new_user",
        """
        create or replace function public.handle_new_user()
        returns trigger as $$
        begin
            insert into public.profile (id)
            values (new.id);
            return new;
        end;
        $$ language plpgsql security definer;
        """,
    ),
    TriggerStatement(
        "trigger on_auth_user_created",
        """
        create or replace trigger on_auth_user_created
            after insert on auth.users
            for each row execute procedure public.handle_new_user();
        """,
    ),
    TriggerStatement(
        "function public.handle_user_delete",
        """
        create or replace function public.handle_user_delete()
        returns trigger as $$
        begin
            delete from auth.users where id = old.id;
            return old;
        end;
        $$ language plpgsql security definer;
        """,
    ),
    TriggerStatement(
        "trigger on_profile_user_deleted",
        """
        create or replace trigger on_profile_user_deleted
            after delete on public.profile
            for each row execute procedure public.handle_user_delete();
        """,
    ),
    TriggerStatement(
        "function public.handle_auth_user_deleted",
        """
        create or replace function public.handle_auth_user_deleted()
        returns trigger as $$
        begin
            delete from public.profile where id = old.id;
            return old;
        end;
        $$ language plpgsql security definer;
        """,
    ),
    TriggerStatement(
        "trigger on_auth_user_deleted",
        """
        create or replace trigger on_auth_user_deleted
            after delete on auth.users
            for each row execute procedure public.handle_auth_user_deleted();
        """,
    ),
]

# Triggers go before the functions they call
REMOVE_STATEMENTS: List[TriggerStatement] = [
    TriggerStatement(
        "trigger on_auth_user_deleted",
        "drop trigger if exists on_auth_user_deleted on auth.users;",
    ),
    TriggerStatement(
        "trigger on_profile_user_deleted",
        "drop trigger if exists on_profile_user_deleted on public.profile;",
    ),
    TriggerStatement(
        "trigger on_auth_user_created",
        "drop trigger if exists on_auth_user_created on auth.users;",
    ),
    TriggerStatement(
        "function public.handle_auth_user_deleted",
        "drop function if exists public.handle_auth_user_deleted();",
    ),
    TriggerStatement(
        "function public.handle_user_delete",
        "drop function if exists public.handle_user_delete();",
    ),
    TriggerStatement(
        "function public.handle_new_user",
        "drop function if exists public.handle_new_user();",
    ),
]


def _require_postgres(engine: Engine) -> None:
    if engine.dialect.name != "postgresql":
        raise TriggerSetupError(
            f"Profile triggers need PostgreSQL (the auth schema lives there), "
            f"got '{engine.dialect.name}'. Check DATABASE_URL."
        )


def _run(engine: Engine, statements: List[TriggerStatement]) -> List[str]:
    _require_postgres(engine)
    done = []
    try:
        # One transaction: all statements apply or none do
        with engine.begin() as conn:
            for statement in statements:
                conn.execute(text(statement.sql))
                logger.debug(f"Executed {statement.name}")
                done.append(statement.name)
    except Exception as e:
        raise TriggerSetupError(f"Failed while running statements: {e}") from e
    return done


def install_profile_triggers(engine: Engine) -> List[str]:
    """Create (or replace) the profile functions and triggers.

    Returns:
        Names of the objects created, in execution order.
    """
    names = _run(engine, INSTALL_STATEMENTS)
    logger.info("✓ Profile triggers installed")
    return names


def remove_profile_triggers(engine: Engine) -> List[str]:
    """Drop the profile triggers and functions if they exist."""
    names = _run(engine, REMOVE_STATEMENTS)
    logger.info("✓ Profile triggers removed")
    return names

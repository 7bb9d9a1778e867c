"""
Supaprofile - Supabase Auth with a SQLAlchemy-managed profile table

Pages gated on a Supabase session, with database triggers keeping
``public.profile`` in step with ``auth.users``.
"""

__version__ = "0.1.0"
__description__ = "Supabase Auth + FastAPI + SQLAlchemy profile sync"

# studymaster/db/database.py
"""
Schema provisioning for the backing Postgres of the hosted backend.

The client never talks to the database directly; it goes through the REST API,
which enforces the row-level-security policies created here. Run once per project:

    python -m studymaster.db.database
"""
import asyncio
from typing import List

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncEngine, AsyncSession

from studymaster.db.models import Base
from studymaster.core.config import settings
from studymaster.core.logging import configure_logging, get_logger

logger = get_logger(__name__)

OWNED_TABLES = ("sessions", "chat_messages")
POLICY_SUBJECTS = {"sessions": "sessions", "chat_messages": "messages"}


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(database_url: str = None, echo: bool = False, **engine_kwargs) -> AsyncEngine:
    engine = create_async_engine(database_url or settings.DATABASE_URL, echo=echo, **engine_kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def row_level_security_statements(bucket: str = None) -> List[str]:
    """DDL for owner-only access, the updated_at trigger and the image bucket (PostgreSQL only)."""
    bucket = bucket or settings.IMAGE_BUCKET
    statements = []
    for table in OWNED_TABLES:
        subject = POLICY_SUBJECTS[table]
        statements.append(f"ALTER TABLE public.{table} ENABLE ROW LEVEL SECURITY")
        for action, clause in (
            ("SELECT", "view"),
            ("INSERT", "create"),
            ("UPDATE", "update"),
            ("DELETE", "delete"),
        ):
            policy = f"Users can {clause} their own {subject}"
            check = "WITH CHECK" if action == "INSERT" else "USING"
            statements.append(f'DROP POLICY IF EXISTS "{policy}" ON public.{table}')
            statements.append(
                f'CREATE POLICY "{policy}" ON public.{table} FOR {action} {check} (auth.uid() = user_id)'
            )

    statements.append(
        """
        CREATE OR REPLACE FUNCTION public.update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
          NEW.updated_at = now();
          RETURN NEW;
        END;
        $$ LANGUAGE plpgsql SET search_path = public
        """
    )
    statements.append("DROP TRIGGER IF EXISTS update_sessions_updated_at ON public.sessions")
    statements.append(
        "CREATE TRIGGER update_sessions_updated_at BEFORE UPDATE ON public.sessions "
        "FOR EACH ROW EXECUTE FUNCTION public.update_updated_at_column()"
    )

    # Image bucket: owner-scoped writes under "<user_id>/...", public reads
    statements.append(
        f"INSERT INTO storage.buckets (id, name, public) VALUES ('{bucket}', '{bucket}', true) "
        "ON CONFLICT (id) DO NOTHING"
    )
    storage_policies = [
        ("Users can upload their own images", "INSERT", "WITH CHECK",
         f"bucket_id = '{bucket}' AND auth.uid()::text = (storage.foldername(name))[1]"),
        ("Users can view their own images", "SELECT", "USING",
         f"bucket_id = '{bucket}' AND auth.uid()::text = (storage.foldername(name))[1]"),
        ("Public images are viewable", "SELECT", "USING", f"bucket_id = '{bucket}'"),
    ]
    for policy, action, check, condition in storage_policies:
        statements.append(f'DROP POLICY IF EXISTS "{policy}" ON storage.objects')
        statements.append(f'CREATE POLICY "{policy}" ON storage.objects FOR {action} {check} ({condition})')
    return statements


async def init_db(engine: AsyncEngine = None) -> None:
    """Create tables; on PostgreSQL also apply access policies and the bucket."""
    own_engine = engine is None
    engine = engine or get_engine()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            if conn.dialect.name == "postgresql":
                for statement in row_level_security_statements():
                    await conn.execute(text(statement))
                logger.info("Row-level security policies and storage bucket applied.")
            else:
                logger.info("Dialect %s has no row-level security; skipped policies.", conn.dialect.name)
        logger.info("Database tables initialized.")
    finally:
        if own_engine:
            await engine.dispose()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(init_db())

from collections.abc import AsyncGenerator
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings

# Query params understood by psycopg but rejected by asyncpg
_PSYCOPG_ONLY_PARAMS = ("sslmode", "channel_binding")


def to_async_url(database_url: str) -> str:
    """postgresql://... -> postgresql+asyncpg://... without psycopg-only params."""
    parsed = urlparse(database_url)
    scheme = "postgresql+asyncpg" if parsed.scheme == "postgresql" else parsed.scheme
    query = parse_qs(parsed.query, keep_blank_values=True)
    for param in _PSYCOPG_ONLY_PARAMS:
        query.pop(param, None)
    return urlunparse((scheme, parsed.netloc, parsed.path, parsed.params, urlencode(query, doseq=True), parsed.fragment))


engine = create_async_engine(
    to_async_url(settings.database_url),
    echo=settings.env == "development",
    pool_pre_ping=True,
    pool_size=5,
    max_overflow=10,
    # asyncpg takes SSL through connect_args instead of sslmode
    connect_args={"ssl": True} if settings.database_ssl else {},
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: commit on success, roll back on any error."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

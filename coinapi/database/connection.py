from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from coinapi.config import settings


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # 로컬 개발/테스트용 SQLite
        return {"connect_args": {"check_same_thread": False}, "echo": settings.DEBUG}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,  # 연결 유효성 검사
        "pool_recycle": 3600,  # 1시간마다 연결 재생성
        "echo": settings.DEBUG,  # 디버그 모드에서 SQL 로깅
        "connect_args": {"options": f"-csearch_path={settings.POSTGRES_SCHEMA}"},
    }


# 지갑 업서트(INSERT ... ON CONFLICT DO NOTHING)를 지원하는 DB만 허용
SUPPORTED_DIALECTS = ("postgresql", "sqlite")


def ensure_supported_dialect(dialect_name: str) -> None:
    if dialect_name not in SUPPORTED_DIALECTS:
        raise RuntimeError(
            f"Unsupported database '{dialect_name}': "
            f"DATABASE_URL must point to one of {', '.join(SUPPORTED_DIALECTS)}"
        )


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))
ensure_supported_dialect(engine.dialect.name)

# Use expire_on_commit=False to avoid DetachedInstanceError when accessing
# attributes after commit within the same request scope (common FastAPI pattern).
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)

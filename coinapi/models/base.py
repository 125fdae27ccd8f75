from sqlalchemy import JSON, BigInteger, Column, DateTime, Integer, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, declared_attr

Base = declarative_base()

# Postgres에서는 JSONB, 그 외(SQLite 테스트 등)에서는 일반 JSON
JSONPayload = JSON().with_variant(JSONB(), "postgresql")


class TimestampMixin:
    """타임스탬프 필드를 위한 믹스인"""

    @declared_attr
    def created_at(cls):
        return Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @declared_attr
    def updated_at(cls):
        return Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )


class BaseModel(Base, TimestampMixin):
    """모든 모델의 베이스 클래스"""

    __abstract__ = True


# SQLite는 INTEGER PRIMARY KEY만 rowid 자동 증가를 지원
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")

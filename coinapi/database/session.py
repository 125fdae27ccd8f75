from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from coinapi.database.connection import SessionLocal


def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception:
        if db.in_transaction():
            db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_context():
    """컨텍스트 매니저를 사용한 데이터베이스 세션 관리 (스크립트용)"""
    db = SessionLocal()
    try:
        with atomic(db):
            yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """하나의 원자적 작업 단위

    블록이 정상 종료되면 커밋하고, 예외가 발생하면 블록 안의 모든 변경을
    롤백한 뒤 예외를 다시 던집니다. 지갑/구매/할인 코드 변경은 반드시
    이 블록 안에서만 일어나야 합니다.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise

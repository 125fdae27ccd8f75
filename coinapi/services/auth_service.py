from typing import Optional

from sqlalchemy.orm import Session

from coinapi.core.security import decode_access_token
from coinapi.repositories.user_repository import UserRepository
from coinapi.schemas.user import User as UserSchema
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """Bearer 토큰으로 현재 사용자를 확인하는 서비스

    토큰 발급(로그인/OAuth)은 외부 인증 서브시스템의 책임입니다.
    """

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)

    def get_current_user(self, token: str) -> Optional[UserSchema]:
        """토큰으로 현재 사용자 조회"""
        token_data = decode_access_token(token)
        if not token_data or not token_data.user_id:
            logger.info("Rejected bearer token: invalid or expired")
            return None

        user = self.user_repo.get_by_id(token_data.user_id)
        if not user or not user.is_active:
            return None

        return user

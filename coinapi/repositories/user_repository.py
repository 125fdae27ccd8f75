from sqlalchemy.orm import Session

from coinapi.models.user import (
    CreatorApplication,
    CreatorApplicationStatus,
    User as UserModel,
)
from coinapi.schemas.user import User as UserSchema
from coinapi.repositories.base import BaseRepository


class UserRepository(BaseRepository[UserModel, UserSchema]):
    """사용자 리포지토리 - 인증/크리에이터 승인 서브시스템의 읽기 전용 창구"""

    def __init__(self, db: Session):
        super().__init__(UserModel, UserSchema, db)

    def is_approved_creator(self, user_id: int) -> bool:
        """크리에이터 신청이 APPROVED 상태인지 확인"""
        application = (
            self.db.query(CreatorApplication)
            .filter(CreatorApplication.user_id == user_id)
            .first()
        )
        return (
            application is not None
            and application.status == CreatorApplicationStatus.APPROVED
        )

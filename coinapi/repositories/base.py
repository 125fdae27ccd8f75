from abc import ABC
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type, Tuple

from sqlalchemy import desc
from sqlalchemy.orm import Query, Session
from pydantic import BaseModel

T = TypeVar("T")
SchemaType = TypeVar("SchemaType", bound=BaseModel)


class BaseRepository(Generic[T, SchemaType], ABC):
    """모든 리포지토리의 베이스 클래스 - Pydantic 응답 보장

    리포지토리는 flush까지만 수행합니다. 커밋/롤백은 작업 단위를 아는
    서비스 계층이 `atomic()` 블록으로 결정합니다.
    """

    def __init__(
        self, model_class: Type[T], schema_class: Type[SchemaType], db: Session
    ):
        self.model_class = model_class
        self.schema_class = schema_class
        self.db = db

    def _to_schema(self, model_instance: Any) -> Optional[SchemaType]:
        """SQLAlchemy 모델을 Pydantic 스키마로 변환"""
        if model_instance is None:
            return None
        return self.schema_class.model_validate(model_instance)

    def _to_schemas(self, model_instances: List[Any]) -> List[SchemaType]:
        return [self.schema_class.model_validate(instance) for instance in model_instances]

    def _filtered(self, filters: Optional[Dict[str, Any]] = None) -> Query:
        query = self.db.query(self.model_class)
        if filters:
            for key, value in filters.items():
                if hasattr(self.model_class, key):
                    query = query.filter(getattr(self.model_class, key) == value)
        return query

    def get_by_id(self, id: Any) -> Optional[SchemaType]:
        """ID로 조회 - Pydantic 스키마 반환"""
        return self._to_schema(self.db.get(self.model_class, id))

    def paginate(
        self, filters: Dict[str, Any], limit: int, offset: int
    ) -> Tuple[List[SchemaType], int]:
        """최신순 페이지 조회 - (항목 목록, 전체 개수)"""
        total_count = self._filtered(filters).count()
        items = (
            self._filtered(filters)
            .order_by(
                desc(getattr(self.model_class, "created_at")),
                desc(getattr(self.model_class, "id")),
            )
            .limit(limit)
            .offset(offset)
            .all()
        )
        return self._to_schemas(items), total_count

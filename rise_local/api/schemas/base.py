"""
공통 스키마 베이스

API 응답은 camelCase, 요청은 camelCase / snake_case 모두 허용합니다.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """camelCase 별칭 모델"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

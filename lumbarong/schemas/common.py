# lumbarong/schemas/common.py
# Базовая pydantic-модель API: camelCase в JSON, snake_case в Python, чтение из ORM-объектов.
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)



class MessageResponse(ApiModel):
    message: str

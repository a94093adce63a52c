"""
Shared pydantic base for request/response bodies.

The editor speaks camelCase JSON (pdfId, allFields, ...); Python code uses
snake_case. Both spellings are accepted on input; output uses camelCase.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

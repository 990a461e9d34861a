"""
Defines common, shared Pydantic models used by both Camera and Accessory.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for models that mirror the backend's camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class MediaInfo(CamelModel):
    url: str
    id: Optional[str] = None
    type: Optional[str] = None
    is_primary: Optional[bool] = None
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None
    label: Optional[str] = None


class CategoryInfo(CamelModel):
    id: Optional[str] = None
    name: str

"""
Defines the canonical data model for a rentable catalog item.

Cameras and accessories share one shape; the two variants only differ in
how the backend reports categories and a couple of accessory-only fields.
"""

import json
import logging
from typing import Dict, List, Optional

from first import first
from pydantic import Field

from .common_info import CamelModel, CategoryInfo, MediaInfo

logger = logging.getLogger(__name__)


class CatalogItem(CamelModel):
    # Core identifying information
    id: str = Field(frozen=True, description="Stable identifier, unique per kind")
    brand: str = ""
    model: str = ""
    variant: Optional[str] = None
    serial_number: Optional[str] = None

    # Branch / ownership attribution
    branch_name: Optional[str] = None
    branch_address: Optional[str] = None
    owner_user_id: Optional[str] = None
    owner_name: Optional[str] = None

    # Pricing
    booking_item_type: Optional[int] = None
    base_daily_rate: Optional[float] = None
    estimated_value_vnd: Optional[float] = None
    deposit_percent: Optional[float] = None
    deposit_cap_min_vnd: Optional[float] = None
    deposit_cap_max_vnd: Optional[float] = None

    media: List[MediaInfo] = Field(default_factory=list)
    specs_json: Optional[str] = None

    is_confirmed: bool = False
    is_available: bool = True

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.brand, self.model, self.variant) if part)

    @property
    def specs(self) -> Dict[str, str]:
        """
        Decodes the free-form specsJson blob. Missing or malformed
        blobs decode to an empty mapping.
        """
        if not self.specs_json:
            return {}
        try:
            data = json.loads(self.specs_json)
        except ValueError:
            logger.warning(f"Unreadable specsJson on item {self.id}.")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(key): str(value) for key, value in data.items()}

    @property
    def primary_media_url(self) -> Optional[str]:
        media = first(self.media, key=lambda m: m.is_primary) or first(self.media)
        return media.url if media else None


class Camera(CatalogItem):
    categories: List[CategoryInfo] = Field(default_factory=list)


class Accessory(CatalogItem):
    item_type: Optional[int] = None
    categories: List[str] = Field(default_factory=list)

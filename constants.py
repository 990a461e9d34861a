import os
from enum import Enum

# --- API & Network ---
API_BASE_URL = os.environ.get(
    "CAMRENT_API_BASE_URL", "https://camrent-backend.up.railway.app"
).rstrip("/")
USER_AGENT = "CamRent Catalog v0.1"
REQUEST_TIMEOUT = float(os.environ.get("CAMRENT_REQUEST_TIMEOUT", "15"))
ACCESS_TOKEN_ENV = "CAMRENT_ACCESS_TOKEN"


class CatalogKind(Enum):
    """The entity kinds served by the rental backend."""

    def __new__(cls, value, resource, owner_path):
        obj = object.__new__(cls)
        obj._value_ = value
        obj.resource = resource
        obj.owner_path = owner_path
        return obj

    CAMERA = ("camera", "api/Cameras", "GetCamerasByOwnerId")
    ACCESSORY = ("accessory", "Accessories", "GetAccessoriesByOwnerId")

    @property
    def base_url(self) -> str:
        return f"{API_BASE_URL}/{self.resource}"


# Keys the backend has been seen to wrap list payloads in, tried in order.
LIST_ENVELOPE_KEYS = ("items", "data", "results", "cameras", "accessories")

# --- Catalog View ---
DEFAULT_PAGE_SIZE = 10
COMPARE_LIMIT = 3
ALL_BRANDS = "All"
MISSING_SPEC_VALUE = "-"


# --- UI Text ---
class ErrorText(Enum):
    NOT_AUTHENTICATED = "You are not signed in. Please sign in to view the catalog."
    LOAD_FAILED = "Something went wrong while loading the catalog."
    COMPARE_FAILED = "Failed to fetch comparison data."

"""Domain models for donation listings and recipient profiles."""

import math
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Literal

FoodCategory = Literal["veg", "non-veg", "unknown"]
FoodPreference = Literal["veg", "non-veg", "both"]
PreparationType = Literal["raw", "cooked", "packaged"]

DEFAULT_CAPACITY = 100.0

_VEG_KEYWORDS = ("vegetable", "fruit", "rice", "dal", "roti", "bread")
_NON_VEG_KEYWORDS = (
    "non-veg",
    "nonveg",
    "non_veg",
    "non veg",
    "chicken",
    "meat",
    "fish",
    "egg",
)


@dataclass(frozen=True)
class Listing:
    """A donor's food-donation offer.

    ``expiry_time`` is the typed expiry instant. ``expiry`` is the legacy
    free-form date string, consulted only when ``expiry_time`` is absent.
    """

    id: str
    food_name: str | None = None
    food_type: str | None = None
    quantity: float | None = None
    latitude: float | None = None
    longitude: float | None = None
    prepared_time: datetime | None = None
    expiry_time: datetime | None = None
    expiry: str | None = None
    verified: bool = False
    preparation_type: str | None = None
    donor_id: str | None = None
    location: str | None = None
    status: str | None = None


@dataclass(frozen=True)
class RecipientProfile:
    """An NGO profile that listings are ranked against."""

    food_preference: FoodPreference = "both"
    capacity: float | None = None
    latitude: float | None = None
    longitude: float | None = None
    preparation_capability: str | None = None

    @property
    def effective_capacity(self) -> float:
        """Return the intake capacity, falling back to the default."""
        return self.capacity or DEFAULT_CAPACITY


def normalize_food_type(food_type: str | None) -> FoodCategory:
    """Classify free-text food type as veg, non-veg or unknown."""
    if not food_type:
        return "unknown"
    normalized = food_type.lower().strip()
    if ("veg" in normalized and "non" not in normalized) or any(
        keyword in normalized for keyword in _VEG_KEYWORDS
    ):
        return "veg"
    if any(keyword in normalized for keyword in _NON_VEG_KEYWORDS):
        return "non-veg"
    return "unknown"


def normalize_preparation_type(
    preparation_type: str | None, food_type: str | None
) -> PreparationType:
    """Resolve the preparation method, inferring it from food type if needed."""
    if preparation_type:
        prep = preparation_type.lower()
        if "raw" in prep:
            return "raw"
        if "cooked" in prep:
            return "cooked"
        if "packaged" in prep or "package" in prep:
            return "packaged"
    if food_type:
        kind = food_type.lower()
        if "raw" in kind or "fresh" in kind:
            return "raw"
        if "cooked" in kind or "prepared" in kind:
            return "cooked"
        if "packaged" in kind or "canned" in kind:
            return "packaged"
    return "cooked"


def parse_instant(value: object) -> datetime | None:
    """Parse a timestamp into an aware datetime, or None if not parseable.

    Naive values are treated as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def resolve_expiry(listing: Listing) -> datetime | None:
    """Return the listing's expiry, preferring the typed timestamp."""
    if listing.expiry_time is not None:
        return parse_instant(listing.expiry_time)
    if listing.expiry:
        return parse_instant(listing.expiry)
    return None


def listing_from_record(record: dict[str, object]) -> Listing:
    """Build a listing from a stored document, resolving legacy field names.

    Precedence: ``food_name`` > ``foodName`` > ``name`` for the display name,
    snake_case over camelCase for every other field.
    """
    return Listing(
        id=str(_first(record, "id", "_id") or ""),
        food_name=_optional_str(_first(record, "food_name", "foodName", "name")),
        food_type=_optional_str(_first(record, "food_type", "foodType")),
        quantity=_optional_float(record.get("quantity")),
        latitude=_optional_float(record.get("latitude")),
        longitude=_optional_float(record.get("longitude")),
        prepared_time=parse_instant(_first(record, "prepared_time", "preparedTime")),
        expiry_time=parse_instant(_first(record, "expiry_time", "expiryTime")),
        expiry=_optional_str(record.get("expiry")),
        verified=bool(record.get("verified") or False),
        preparation_type=_optional_str(
            _first(record, "preparation_type", "preparationType")
        ),
        donor_id=_optional_str(_first(record, "donor_id", "donorId")),
        location=_optional_str(record.get("location")),
        status=_optional_str(record.get("status")),
    )


def _first(record: dict[str, object], *keys: str) -> object | None:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def _optional_str(value: object | None) -> str | None:
    if value is None:
        return None
    return str(value)


def _optional_float(value: object | None) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None

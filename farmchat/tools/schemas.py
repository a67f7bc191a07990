"""farmchat/tools/schemas.py

Typed parameter records for every marketplace tool, plus the validation
entry point used by the executor.

Validation never raises for bad model output: ``validate_arguments`` returns
``Ok(args)`` or ``Err(reason)`` so the caller can hand the reason back to the
model as data.
"""

from __future__ import annotations

# Standard Library
import dataclasses
import re
from enum import StrEnum
from typing import Any, Final, Generic, Literal, TypeVar

# Third-Party Libraries
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


class ToolName(StrEnum):
    """Closed set of tools the model may invoke."""

    SEARCH_PRODUCTS = "search_products"
    FIND_NEARBY_SELLERS = "find_nearby_sellers"
    SEASONAL_RECOMMENDATIONS = "seasonal_recommendations"
    MANAGE_WISHLIST = "manage_wishlist"
    TRACK_ORDER = "track_order"
    INSTANT_ORDER = "instant_order"
    GET_PAYMENT_INFO = "get_payment_info"


# ---------------------------------------------------------------------------
# Quantity parsing ("buy 2kg tomatoes")
# ---------------------------------------------------------------------------

# A number directly followed by an optional space and a kg unit.
_QUANTITY_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?<![\w.])(\d+(?:\.\d+)?)\s*(?:kgs?|kilos?|kilograms?)\b",
    re.IGNORECASE,
)
_BUY_VERB_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^\s*(?:please\s+)?(?:buy|order|purchase)\b\s*", re.IGNORECASE
)

DEFAULT_QUANTITY: Final[float] = 1.0


def extract_quantity(text: str) -> float | None:
    """Return the first ``<number> kg`` quantity in ``text``, or ``None``.

    >>> extract_quantity("buy 1.5kg potatoes")
    1.5
    """
    match = _QUANTITY_PATTERN.search(text)
    if not match:
        return None
    return float(match.group(1))


def parse_buy_command(text: str) -> tuple[str, float]:
    """Split a purchase phrase into ``(item_name, quantity)``.

    The buy/order verb and the quantity token are stripped from the item name.
    The quantity defaults to ``1`` when no token is present.
    """
    quantity = extract_quantity(text)
    item = _QUANTITY_PATTERN.sub(" ", text)
    item = _BUY_VERB_PATTERN.sub("", item)
    item = re.sub(r"^\s*of\s+", "", item, flags=re.IGNORECASE)
    item = " ".join(item.split()).strip(" .,!?")
    return item, quantity if quantity is not None else DEFAULT_QUANTITY


# ---------------------------------------------------------------------------
# Parameter records
# ---------------------------------------------------------------------------


class _ToolArgs(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_empty(cls, data: Any) -> Any:
        # Models send null or "" for omitted fields; let the defaults apply.
        if not isinstance(data, dict):
            return data
        return {
            k: v
            for k, v in data.items()
            if v is not None and not (isinstance(v, str) and not v.strip())
        }


class SearchProductsArgs(_ToolArgs):
    query: str = Field(..., description="Search term for product name (e.g., beans, tomato, onion)")
    category: str | None = Field(None, description="Product category filter")
    location: str | None = Field(None, description="Location filter")
    maxPrice: float | None = Field(None, ge=0, description="Maximum price filter")


class FindNearbySellersArgs(_ToolArgs):
    location: str | None = Field(None, description="User location or area to search")
    radius: float = Field(10, gt=0, description="Search radius in kilometers")
    farmingMethod: str | None = Field(
        None,
        description="Farming method filter: organic, natural, conventional, or all",
    )


class SeasonalRecommendationsArgs(_ToolArgs):
    month: str | None = Field(None, description="Month number (1-12) or current month if not specified")
    location: str = Field("India", description="Location for regional recommendations")
    type: Literal["vegetables", "planting", "both"] = Field(
        "both", description="Type of info: vegetables, planting, or both"
    )

    @field_validator("month", mode="before")
    @classmethod
    def _month_as_text(cls, value: Any) -> Any:
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _lower_type(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value


class ManageWishlistArgs(_ToolArgs):
    action: Literal["add", "remove", "view"] = Field(..., description="Action to perform on wishlist")
    itemName: str | None = Field(None, description="Name of the item to add/remove")
    maxPrice: float | None = Field(None, ge=0, description="Maximum price alert for the item")
    preferredLocation: str | None = Field(None, description="Preferred location for the item")

    @field_validator("action", mode="before")
    @classmethod
    def _lower_action(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value


class TrackOrderArgs(_ToolArgs):
    searchTerm: str = Field(..., min_length=1, description="Order ID or phone number to search for")

    @field_validator("searchTerm", mode="before")
    @classmethod
    def _numeric_term(cls, value: Any) -> Any:
        # A phone number may arrive as a JSON number.
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, int):
            return str(value)
        return value


class InstantOrderArgs(_ToolArgs):
    itemName: str = Field(
        ...,
        min_length=1,
        description=(
            "Name of the product/vegetable to order (extract from user message, "
            "e.g., 'tomatoes' from 'buy 2kg tomatoes')"
        ),
    )
    quantity: float = Field(
        DEFAULT_QUANTITY,
        gt=0,
        description=(
            "Quantity to order in kg (extract from user message: '2kg' = 2, "
            "'3 kg' = 3, '1.5kg' = 1.5, default = 1)"
        ),
    )
    maxPrice: float | None = Field(None, ge=0, description="Maximum price per kg")

    @model_validator(mode="before")
    @classmethod
    def _lift_quantity_from_item(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not isinstance(data.get("itemName"), str):
            return data
        data = dict(data)
        item, parsed = parse_buy_command(data["itemName"])
        # An explicit token in the item name beats a missing or default quantity.
        if extract_quantity(data["itemName"]) is not None and data.get("quantity") in (
            None,
            "",
            DEFAULT_QUANTITY,
        ):
            data["quantity"] = parsed
        if item:
            data["itemName"] = item
        return data


class PaymentInfoArgs(_ToolArgs):
    question: str = Field(..., description="Payment related question or topic")


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

ArgsT = TypeVar("ArgsT", bound=BaseModel)


@dataclasses.dataclass(frozen=True, slots=True)
class Ok(Generic[ArgsT]):
    args: ArgsT


@dataclasses.dataclass(frozen=True, slots=True)
class Err:
    reason: str


ValidationOutcome = Ok[BaseModel] | Err

ARGS_MODELS: Final[dict[ToolName, type[_ToolArgs]]] = {
    ToolName.SEARCH_PRODUCTS: SearchProductsArgs,
    ToolName.FIND_NEARBY_SELLERS: FindNearbySellersArgs,
    ToolName.SEASONAL_RECOMMENDATIONS: SeasonalRecommendationsArgs,
    ToolName.MANAGE_WISHLIST: ManageWishlistArgs,
    ToolName.TRACK_ORDER: TrackOrderArgs,
    ToolName.INSTANT_ORDER: InstantOrderArgs,
    ToolName.GET_PAYMENT_INFO: PaymentInfoArgs,
}


def _summarise(exc: ValidationError) -> str:
    parts: list[str] = []
    for error in exc.errors():
        where = ".".join(str(p) for p in error.get("loc", ())) or "arguments"
        parts.append(f"{where}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


def validate_arguments(name: ToolName, raw: dict[str, Any] | None) -> ValidationOutcome:
    """Validate raw model arguments against the tool's parameter record.

    Args:
        name: Tool being invoked.
        raw: Argument mapping as emitted by the model.

    Returns:
        ``Ok`` wrapping the parsed record, or ``Err`` with a readable reason.
    """
    if raw is not None and not isinstance(raw, dict):
        return Err(f"arguments must be an object, got {type(raw).__name__}")
    try:
        return Ok(ARGS_MODELS[name].model_validate(raw or {}))
    except ValidationError as exc:
        return Err(_summarise(exc))

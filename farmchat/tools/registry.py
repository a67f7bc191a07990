"""farmchat/tools/registry.py

Process-wide, read-only tool registry.

Each entry binds a :class:`ToolName` to its human description, example
phrasings (rendered into the system prompt), and its parameter record. The
mapping is built once at import and exposed through ``MappingProxyType`` so
concurrent turns can read it without locking.
"""

from __future__ import annotations

# Standard Library
import dataclasses
import types
import typing
from typing import Any, Final, Literal

# Third-Party Libraries
from pydantic import BaseModel

from farmchat.tools.schemas import ARGS_MODELS, ToolName


@dataclasses.dataclass(frozen=True, slots=True)
class ToolDefinition:
    """Static description of one model-callable tool.

    Attributes:
        name: Tool identifier.
        title: Short heading used in the capability menu.
        description: Description shown to the model in the function declaration.
        capabilities: Bullet points describing what the tool can do.
        examples: Example user phrasings that should select this tool.
        args_model: pydantic record the arguments are validated against.
        local: ``True`` when the tool makes no outbound call.
    """

    name: ToolName
    title: str
    description: str
    capabilities: tuple[str, ...]
    examples: tuple[str, ...]
    args_model: type[BaseModel]
    local: bool = False


_DEFINITIONS: Final[tuple[ToolDefinition, ...]] = (
    ToolDefinition(
        name=ToolName.SEARCH_PRODUCTS,
        title="PRODUCT SEARCH",
        description=(
            "Search for vegetables/products in the marketplace. Use this when "
            "customers ask about products, prices, availability, or want to "
            "find specific items."
        ),
        capabilities=(
            "Find vegetables by name, category, location, price range",
            "Check prices, availability, seller information",
        ),
        examples=("Find organic tomatoes under ₹50 in Delhi",),
        args_model=ARGS_MODELS[ToolName.SEARCH_PRODUCTS],
    ),
    ToolDefinition(
        name=ToolName.FIND_NEARBY_SELLERS,
        title="SELLER DISCOVERY",
        description=(
            "Find verified sellers and farms near user location with distance "
            "filtering. Use when customers want to find sellers, farms, or ask "
            "about who sells specific items nearby."
        ),
        capabilities=(
            "Find verified sellers and farms near user location",
            "Filter by farming methods (organic, natural, conventional)",
            "Get seller profiles, trust scores, and farm details",
        ),
        examples=("Find organic farmers near me", "Show sellers within 5km"),
        args_model=ARGS_MODELS[ToolName.FIND_NEARBY_SELLERS],
    ),
    ToolDefinition(
        name=ToolName.SEASONAL_RECOMMENDATIONS,
        title="SEASONAL GUIDANCE",
        description=(
            "Get seasonal vegetable recommendations and planting calendar for "
            "Indian agriculture. Use when customers ask about what's in season, "
            "what to plant, or seasonal farming advice."
        ),
        capabilities=(
            "Get seasonal vegetable recommendations",
            "Planting calendar for Indian agriculture",
            "Regional farming advice and tips",
        ),
        examples=("What vegetables are in season now?", "What should I plant this month?"),
        args_model=ARGS_MODELS[ToolName.SEASONAL_RECOMMENDATIONS],
    ),
    ToolDefinition(
        name=ToolName.MANAGE_WISHLIST,
        title="WISHLIST MANAGEMENT",
        description=(
            "Add items to wishlist, remove items, or view user's wishlist. Use "
            "when customers want to save items for later or set availability "
            "alerts."
        ),
        capabilities=(
            "Add items to wishlist with price alerts",
            "Remove items or view saved items",
            "Set availability notifications",
        ),
        examples=("Add organic tomatoes to my wishlist", "Show my wishlist"),
        args_model=ARGS_MODELS[ToolName.MANAGE_WISHLIST],
    ),
    ToolDefinition(
        name=ToolName.TRACK_ORDER,
        title="ORDER TRACKING",
        description=(
            "Track order status and get order information. Use this when "
            "customers provide order IDs or want to check their order status."
        ),
        capabilities=(
            "Track order status by Order ID or phone number",
            "Get delivery updates and seller contact",
            "Check order history",
        ),
        examples=("Track my order #abc123", "Check orders for phone 9876543210"),
        args_model=ARGS_MODELS[ToolName.TRACK_ORDER],
    ),
    ToolDefinition(
        name=ToolName.INSTANT_ORDER,
        title="INSTANT ORDER",
        description=(
            "Create an instant order for customers who want to buy products "
            "immediately. Use this when customers say 'buy [item]' or similar "
            "purchase commands. IMPORTANT: Always extract the quantity from the "
            "user's message - if they say 'buy 2kg tomatoes', set quantity to 2, "
            "not 1."
        ),
        capabilities=(
            "Place immediate orders with \"pay later\" option",
            "Works with \"buy [item]\" commands",
            "Parse patterns like \"2kg\", \"3 kg\", \"buy 5kg\", \"order 1.5kg\"",
            "Creates order instantly with tracking URL",
        ),
        examples=("buy 2kg tomatoes",),
        args_model=ARGS_MODELS[ToolName.INSTANT_ORDER],
    ),
    ToolDefinition(
        name=ToolName.GET_PAYMENT_INFO,
        title="PAYMENT GUIDANCE",
        description=(
            "Get payment guidance and UPI information. Use this when customers "
            "ask about payments, UPI, or have payment-related questions."
        ),
        capabilities=(
            "Explain UPI payment process",
            "Help with QR code scanning and troubleshooting",
            "Support all UPI apps (GPay, PhonePe, Paytm, BHIM)",
        ),
        examples=("How do I pay with UPI?", "My QR code is not scanning"),
        args_model=ARGS_MODELS[ToolName.GET_PAYMENT_INFO],
        local=True,
    ),
)

TOOL_REGISTRY: Final[types.MappingProxyType[ToolName, ToolDefinition]] = types.MappingProxyType(
    {d.name: d for d in _DEFINITIONS}
)

# Every ToolName must have exactly one definition.
if set(TOOL_REGISTRY) != set(ToolName) or len(_DEFINITIONS) != len(TOOL_REGISTRY):
    raise RuntimeError("tool registry out of sync with ToolName")


def get_tool(name: str) -> ToolDefinition | None:
    """Look up a definition by its wire name; ``None`` for unknown tools."""
    try:
        return TOOL_REGISTRY[ToolName(name)]
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Gemini function declarations
# ---------------------------------------------------------------------------

_SCALAR_TYPES: Final[dict[type, str]] = {
    str: "STRING",
    float: "NUMBER",
    int: "INTEGER",
    bool: "BOOLEAN",
}


def _field_schema(annotation: Any, description: str | None) -> dict[str, Any]:
    """Translate one pydantic field annotation to a Gemini schema fragment."""
    origin = typing.get_origin(annotation)
    if origin in (typing.Union, types.UnionType):
        non_null = [a for a in typing.get_args(annotation) if a is not type(None)]
        inner = _field_schema(non_null[0], description)
        inner["nullable"] = True
        return inner

    schema: dict[str, Any]
    if origin is Literal:
        schema = {"type": "STRING", "enum": [str(v) for v in typing.get_args(annotation)]}
    else:
        schema = {"type": _SCALAR_TYPES.get(annotation, "STRING")}
    if description:
        schema["description"] = description
    return schema


def parameters_schema(model: type[BaseModel]) -> dict[str, Any]:
    """Render a parameter record as an OpenAPI-subset object schema."""
    properties: dict[str, Any] = {}
    required: list[str] = []
    for field_name, field in model.model_fields.items():
        properties[field_name] = _field_schema(field.annotation, field.description)
        if field.is_required():
            required.append(field_name)
    return {"type": "OBJECT", "properties": properties, "required": required}


def function_declarations() -> list[dict[str, Any]]:
    """Return every registered tool as a Gemini function declaration."""
    return [
        {
            "name": str(d.name),
            "description": d.description,
            "parameters": parameters_schema(d.args_model),
        }
        for d in TOOL_REGISTRY.values()
    ]

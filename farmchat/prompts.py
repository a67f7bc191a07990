"""farmchat/prompts.py

System prompt assembly for the marketplace assistant.

``build_system_prompt`` is pure: the same caller and registry always produce
the same string. The capability menu is rendered from the tool registry so a
tool added there shows up in the prompt without touching this module.
"""

from __future__ import annotations

# Standard Library
from collections.abc import Iterable

from farmchat.messages import CallerContext
from farmchat.tools.registry import TOOL_REGISTRY, ToolDefinition

ASSISTANT_NAME = "Arya Natural Farms AI"

_TOPIC_RESTRICTIONS = (
    "🚨 STRICT TOPIC RESTRICTIONS:\n"
    "- ONLY answer questions about: farming, agriculture, vegetables, crops, "
    "gardening, plant care, soil, irrigation, fertilizers, pesticides, organic "
    "farming, seasonal advice, marketplace orders, payments (UPI), and delivery\n"
    "- NEVER answer questions about: technology, entertainment, politics, "
    "personal advice, health/medical, education, travel, cooking recipes, or "
    "any non-farming topics\n"
    "- If asked about non-farming topics, politely redirect to farming questions\n"
    "- Always stay focused on agricultural and marketplace assistance"
)

_PERSONALITY = (
    "PERSONALITY & APPROACH:\n"
    "- Always be helpful, friendly, and knowledgeable about Indian agriculture\n"
    "- Use emojis appropriately to make conversations engaging\n"
    "- Provide actionable advice and specific recommendations\n"
    "- Keep responses concise but informative (under 400 words)\n"
    "- Focus on vegetables, farming, payments (UPI), and orders"
)

_REGIONAL_CONTEXT = (
    "INDIAN CONTEXT:\n"
    "- Understand Indian vegetables, seasons, and farming practices\n"
    "- Support UPI payment methods popular in India\n"
    "- Consider local/regional preferences and climate\n"
    "- Use Indian currency (₹) and measurements\n"
    "- Provide region-specific advice when possible"
)

_COMMAND_RECOGNITION = (
    "SMART COMMAND RECOGNITION:\n"
    '- "find sellers" / "who sells" → use find_nearby_sellers\n'
    '- "what\'s in season" / "seasonal vegetables" → use seasonal_recommendations\n'
    '- "add to wishlist" / "save for later" → use manage_wishlist\n'
    '- "buy [item]" / "order [item]" → use instant_order\n'
    "  * CRITICAL: Parse quantity from user message accurately\n"
    '  * "buy 2kg tomatoes" → itemName: "tomatoes", quantity: 2\n'
    '  * "order 3 kg onions" → itemName: "onions", quantity: 3\n'
    '  * "buy 1.5kg potatoes" → itemName: "potatoes", quantity: 1.5\n'
    '  * "buy tomatoes" → itemName: "tomatoes", quantity: 1 (default)\n'
    '- "track order" / "order status" → use track_order\n'
    '- "payment help" / "UPI issue" → use get_payment_info\n'
    '- "search [product]" / "find [product]" → use search_products'
)

_CLOSING = (
    "Always use your tools when customers ask questions - don't guess or "
    "provide generic answers when you can get real, specific data!"
)


def _render_tool(index: int, tool: ToolDefinition) -> str:
    lines = [f"{index}. {tool.title} ({tool.name}):"]
    lines.extend(f"   - {c}" for c in tool.capabilities)
    examples = " or ".join(f'"{e}"' for e in tool.examples)
    lines.append(f"   - Example: {examples}")
    return "\n".join(lines)


def render_capability_menu(tools: Iterable[ToolDefinition] | None = None) -> str:
    """Render the numbered tool menu embedded in the system prompt."""
    tools = list(TOOL_REGISTRY.values() if tools is None else tools)
    body = "\n\n".join(_render_tool(i, t) for i, t in enumerate(tools, 1))
    return (
        "🛠️ ENHANCED CAPABILITIES & TOOLS:\n"
        "You have access to powerful tools to help customers:\n\n"
        f"{body}"
    )


def build_system_prompt(
    caller: CallerContext | None,
    default_location: str = "India",
) -> str:
    """Build the system instruction for one turn.

    Args:
        caller: Identity of the caller; ``None`` for an anonymous guest.
        default_location: Region used when the caller has no location.

    Returns:
        The complete system instruction string.
    """
    caller = caller or CallerContext()
    context = (
        "CONTEXT:\n"
        f"- User: {caller.email or 'Guest'} ({caller.role or 'guest'})\n"
        f"- Location: {caller.location or default_location}"
    )
    sections = [
        f"You are {ASSISTANT_NAME}, an intelligent assistant EXCLUSIVELY for "
        "farming, agriculture, and vegetable marketplace topics.",
        _TOPIC_RESTRICTIONS,
        context,
        render_capability_menu(),
        _PERSONALITY,
        _REGIONAL_CONTEXT,
        _COMMAND_RECOGNITION,
        _CLOSING,
    ]
    return "\n\n".join(sections)

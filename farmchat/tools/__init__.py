"""Model-callable marketplace tools: schemas, registry and executor."""

from farmchat.tools.executor import ToolExecutor, ToolResult, classify_search_term
from farmchat.tools.registry import TOOL_REGISTRY, ToolDefinition, function_declarations, get_tool
from farmchat.tools.schemas import ToolName, extract_quantity, parse_buy_command, validate_arguments

__all__ = [
    "TOOL_REGISTRY",
    "ToolDefinition",
    "ToolExecutor",
    "ToolName",
    "ToolResult",
    "classify_search_term",
    "extract_quantity",
    "function_declarations",
    "get_tool",
    "parse_buy_command",
    "validate_arguments",
]

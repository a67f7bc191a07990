"""farmchat/tools/executor.py

Executes model-issued tool calls against the marketplace collaborator APIs.

One executor is created per turn, bound to the caller's identity and the
resolved base URL. ``execute`` never raises: argument problems and
collaborator failures come back as ``{"success": False, "error": ...}`` so the
model can tell the user what went wrong and, for bad arguments, retry.

Each call is a single attempt. There is no idempotency key, so a tool the
model invokes twice (wishlist add, instant order) has its side effect twice.
"""

from __future__ import annotations

# Standard Library
import logging
import re
from typing import Any, Final, assert_never

# Third-Party Libraries
import httpx

from farmchat.errors import ToolArgumentError, ToolExecutionError
from farmchat.messages import CallerContext
from farmchat.tools.payment import payment_guidance
from farmchat.tools.registry import get_tool
from farmchat.tools.schemas import (
    Err,
    FindNearbySellersArgs,
    InstantOrderArgs,
    ManageWishlistArgs,
    Ok,
    PaymentInfoArgs,
    SearchProductsArgs,
    SeasonalRecommendationsArgs,
    ToolName,
    TrackOrderArgs,
    validate_arguments,
)
from farmchat.urls import api_url

logger = logging.getLogger("farmchat.tools")

ToolResult = dict[str, Any]

RESULT_LIMIT: Final[int] = 10

PHONE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\d{10}$")

SIGN_IN_REQUIRED: Final[str] = "Please sign in to use wishlist features."

# Human message and empty list-shaped defaults per tool, used on failure.
_FAILURES: Final[dict[ToolName, tuple[str, dict[str, Any]]]] = {
    ToolName.SEARCH_PRODUCTS: (
        "Could not search products at the moment. Please try again.",
        {"products": []},
    ),
    ToolName.FIND_NEARBY_SELLERS: (
        "Could not find sellers at the moment. Please try again.",
        {"sellers": []},
    ),
    ToolName.SEASONAL_RECOMMENDATIONS: (
        "Could not get seasonal information. Please try again.",
        {},
    ),
    ToolName.MANAGE_WISHLIST: ("Could not update wishlist. Please try again.", {}),
    ToolName.TRACK_ORDER: (
        "Could not track order at the moment. Please try again.",
        {"orders": []},
    ),
    ToolName.INSTANT_ORDER: ("Could not create order at the moment. Please try again.", {}),
    ToolName.GET_PAYMENT_INFO: ("Could not load payment information.", {}),
}


def _fmt_number(value: float) -> str:
    """Render 10.0 as "10" and 2.5 as "2.5" in query strings."""
    return str(int(value)) if float(value).is_integer() else str(value)


def _query(**params: Any) -> dict[str, str]:
    """Drop unset parameters and stringify the rest."""
    out: dict[str, str] = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        out[key] = _fmt_number(value) if isinstance(value, (int, float)) else str(value)
    return out


def _body(**fields: Any) -> dict[str, Any]:
    """Drop unset fields from a JSON body; set values keep their types."""
    return {key: value for key, value in fields.items() if value is not None}


def classify_search_term(search_term: str) -> tuple[str, str]:
    """Route an order search term to the ``phone`` or ``orderId`` parameter.

    A bare 10-digit number is a phone number; anything else is treated as an
    opaque order identifier.
    """
    term = search_term.strip()
    if PHONE_PATTERN.match(term):
        return "phone", term
    return "orderId", term


class ToolExecutor:
    """Runs tool invocations for a single turn.

    Args:
        client: Shared async HTTP client.
        base_url: Origin of the collaborator APIs.
        caller: Identity of the caller, if known.
        timeout: Per-call timeout in seconds; ``None`` uses the client default.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        caller: CallerContext | None = None,
        timeout: float | None = None,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._caller = caller or CallerContext()
        self._timeout = timeout
        self.invocations: list[tuple[str, dict[str, Any]]] = []

    async def execute(self, name: str, raw_args: dict[str, Any] | None) -> ToolResult:
        """Validate and run one tool call, returning a structured result.

        Args:
            name: Tool name as emitted by the model.
            raw_args: Arguments as emitted by the model.

        Returns:
            The collaborator payload on success, or a ``success: False`` dict.
        """
        self.invocations.append((name, dict(raw_args or {})))
        definition = get_tool(name)
        if definition is None:
            logger.warning("Model requested unknown tool %r", name)
            return {"success": False, "error": f"Unknown tool: {name}"}

        outcome = validate_arguments(definition.name, raw_args)
        match outcome:
            case Err(reason=reason):
                err = ToolArgumentError(name, reason)
                logger.warning("[%s] %s", name, err)
                return {"success": False, "error": str(err), "retryable": True}
            case Ok(args=args):
                logger.info("[%s] args=%s", name, args.model_dump(exclude_none=True))

        message, empty = _FAILURES[definition.name]
        try:
            return await self._dispatch(definition.name, args)
        except ToolExecutionError as exc:
            logger.error("[%s] collaborator call failed: %s", name, exc, exc_info=True)
            return {"success": False, "error": message, **empty}
        except Exception as exc:
            logger.error("[%s] unexpected tool failure: %s", name, exc, exc_info=True)
            return {"success": False, "error": message, **empty}

    async def _dispatch(self, name: ToolName, args: Any) -> ToolResult:
        match name:
            case ToolName.SEARCH_PRODUCTS:
                return await self._search_products(args)
            case ToolName.FIND_NEARBY_SELLERS:
                return await self._find_nearby_sellers(args)
            case ToolName.SEASONAL_RECOMMENDATIONS:
                return await self._seasonal_recommendations(args)
            case ToolName.MANAGE_WISHLIST:
                return await self._manage_wishlist(args)
            case ToolName.TRACK_ORDER:
                return await self._track_order(args)
            case ToolName.INSTANT_ORDER:
                return await self._instant_order(args)
            case ToolName.GET_PAYMENT_INFO:
                return self._payment_info(args)
            case _:
                assert_never(name)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(
        self,
        tool: ToolName,
        method: str,
        endpoint: str,
        *,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = api_url(self._base_url, endpoint)
        extra: dict[str, Any] = {} if self._timeout is None else {"timeout": self._timeout}
        logger.info("[%s] %s %s params=%s", tool, method, url, params or {})
        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                json=body,
                headers={"Content-Type": "application/json"},
                **extra,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise ToolExecutionError(
                tool, f"API Error: {exc.response.status_code}", status=exc.response.status_code
            ) from exc
        except httpx.HTTPError as exc:
            raise ToolExecutionError(tool, f"Network error: {exc}") from exc
        except httpx.InvalidURL as exc:
            raise ToolExecutionError(tool, f"Invalid collaborator URL {url!r}: {exc}") from exc
        except ValueError as exc:
            raise ToolExecutionError(tool, f"Malformed JSON from {endpoint}") from exc

        if not isinstance(data, dict):
            raise ToolExecutionError(tool, f"Unexpected payload type from {endpoint}")
        return data

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    async def _search_products(self, args: SearchProductsArgs) -> ToolResult:
        data = await self._request(
            ToolName.SEARCH_PRODUCTS,
            "GET",
            "/api/ai/products",
            params=_query(
                q=args.query,
                category=args.category,
                location=args.location,
                maxPrice=args.maxPrice,
                limit=RESULT_LIMIT,
            ),
        )
        return {
            "success": data.get("success"),
            "products": data.get("products") or [],
            "count": data.get("count") or 0,
            "query_info": data.get("query_info") or {},
        }

    async def _find_nearby_sellers(self, args: FindNearbySellersArgs) -> ToolResult:
        data = await self._request(
            ToolName.FIND_NEARBY_SELLERS,
            "GET",
            "/api/ai/sellers",
            params=_query(
                location=args.location,
                radius=args.radius,
                farmingMethod=args.farmingMethod,
                limit=RESULT_LIMIT,
            ),
        )
        return {
            "success": data.get("success"),
            "sellers": data.get("sellers") or [],
            "count": data.get("count") or 0,
            "query_info": data.get("query_info") or {},
        }

    async def _seasonal_recommendations(self, args: SeasonalRecommendationsArgs) -> ToolResult:
        return await self._request(
            ToolName.SEASONAL_RECOMMENDATIONS,
            "GET",
            "/api/ai/seasonal",
            params=_query(month=args.month, location=args.location, type=args.type),
        )

    async def _manage_wishlist(self, args: ManageWishlistArgs) -> ToolResult:
        if not self._caller.is_authenticated:
            logger.info("[manage_wishlist] refused for anonymous caller")
            return {"success": False, "error": SIGN_IN_REQUIRED}

        if args.action == "view":
            return await self._request(
                ToolName.MANAGE_WISHLIST,
                "GET",
                "/api/ai/wishlist",
                params=_query(userId=self._caller.id),
            )
        return await self._request(
            ToolName.MANAGE_WISHLIST,
            "POST",
            "/api/ai/wishlist",
            body=_body(
                userId=self._caller.id,
                action=args.action,
                itemName=args.itemName,
                maxPrice=args.maxPrice,
                preferredLocation=args.preferredLocation,
            ),
        )

    async def _track_order(self, args: TrackOrderArgs) -> ToolResult:
        key, term = classify_search_term(args.searchTerm)
        params = {key: term, **_query(userId=self._caller.id)}
        return await self._request(ToolName.TRACK_ORDER, "GET", "/api/ai/orders", params=params)

    async def _instant_order(self, args: InstantOrderArgs) -> ToolResult:
        return await self._request(
            ToolName.INSTANT_ORDER,
            "POST",
            "/api/ai/instant-order",
            body=_body(
                userId=self._caller.id,
                itemName=args.itemName,
                quantity=args.quantity,
                maxPrice=args.maxPrice,
                userPhone=self._caller.contact_phone,
                userLocation=self._caller.location,
            ),
        )

    def _payment_info(self, args: PaymentInfoArgs) -> ToolResult:
        return payment_guidance(args.question)

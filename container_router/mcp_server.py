"""
Container Router MCP Server

Exposes container-router as MCP tools for any MCP-enabled agent.

Tools:
  - analyze_routing(tracking_number, ...) → ordered provider decision
  - record_failure(provider, error_type?, message?) → count a failed lookup
  - record_success(provider) → pay back recent failures
  - get_provider_stats(provider?) → cost, reliability and reputation

All tools share one Router, so outcomes reported through the server shape
later decisions for as long as the server runs.

Usage:
    python -m container_router.mcp_server
    # or
    from container_router.mcp_server import create_server
"""

from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, List, Optional, Union

# ---------------------------------------------------------------------------
# Graceful MCP availability check
# ---------------------------------------------------------------------------
try:
    from mcp.server.fastmcp import FastMCP
    MCP_AVAILABLE = True
except ImportError:
    MCP_AVAILABLE = False
    FastMCP = None  # type: ignore

from container_router import Router, TrackingContext


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_router(config_path: Optional[str] = None) -> Router:
    """Create the Router shared by every tool of one server."""
    return Router(config_path)


def _jsonable_stats(stats: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(stats)
    for key in ("last_failure", "last_success"):
        if out.get(key) is not None:
            out[key] = out[key].isoformat()
    return out


# ---------------------------------------------------------------------------
# Server factory
# ---------------------------------------------------------------------------

def create_server(router: Optional[Router] = None) -> "FastMCP":
    """Create and return the FastMCP server with container-router tools.

    Args:
        router: Router to serve. A default one is created when omitted.

    Returns:
        A configured ``FastMCP`` instance ready to run.

    Raises:
        ImportError: If the ``mcp`` package is not installed.
    """
    if not MCP_AVAILABLE:
        raise ImportError(
            "The 'mcp' package is required to run the container-router MCP server. "
            "Install it with: pip install container-router[mcp]"
        )

    shared = router if router is not None else _get_router()

    mcp = FastMCP(
        name="container-router",
        instructions=(
            "Container Router — picks shipment-tracking providers. "
            "Use analyze_routing() to get an ordered provider list, then report "
            "each lookup with record_success() or record_failure(). "
            "get_provider_stats() shows cost, reliability and recent failures."
        ),
    )

    # ------------------------------------------------------------------
    # Tool: analyze_routing
    # ------------------------------------------------------------------
    @mcp.tool()
    def analyze_routing(
        tracking_number: str,
        tracking_type: str = "container",
        user_tier: Optional[str] = None,
        cost_optimization: bool = False,
        reliability_optimization: bool = False,
        previous_failures: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Decide which tracking providers to query, in order.

        Args:
            tracking_number: Container, booking or bill-of-lading number.
            tracking_type: ``"container"``, ``"booking"`` or ``"bol"``.
            user_tier: ``"free"``, ``"premium"``, ``"enterprise"`` or omitted.
            cost_optimization: Prefer cheap providers.
            reliability_optimization: Prefer reliable providers.
            previous_failures: Provider ids already tried without success.

        Returns:
            Dict with keys: suggested_carrier, confidence,
            prioritized_providers, fallback_strategy, reasoning, match_kind,
            scores. On invalid input, a dict with an ``error`` key.
        """
        try:
            context = TrackingContext(
                tracking_number=tracking_number,
                tracking_type=tracking_type,
                user_tier=user_tier,
                cost_optimization=cost_optimization,
                reliability_optimization=reliability_optimization,
                previous_failures=previous_failures or (),
            )
        except ValueError as exc:
            return {"error": str(exc)}
        decision = shared.analyze_routing(context)
        result = decision.to_dict()
        result["confidence"] = round(decision.confidence, 4)
        return result

    # ------------------------------------------------------------------
    # Tool: record_failure
    # ------------------------------------------------------------------
    @mcp.tool()
    def record_failure(
        provider: str,
        error_type: str = "UNKNOWN",
        message: str = "",
    ) -> Dict[str, Any]:
        """Record a failed lookup so later routing avoids the provider.

        Args:
            provider: Provider id (e.g. ``"maersk"``); unregistered ids are fine.
            error_type: e.g. ``"TIMEOUT"``, ``"RATE_LIMIT"``, ``"NOT_FOUND"``.
            message: Optional error message.

        Returns:
            Dict with keys: provider, recorded, recent_failures.
        """
        shared.record_failure(
            provider,
            {"provider": provider, "errorType": error_type, "message": message},
        )
        stats = shared.get_provider_stats_including_unknown(provider)
        return {
            "provider": provider,
            "recorded": True,
            "recent_failures": stats["recent_failures"] if stats else 0,
        }

    # ------------------------------------------------------------------
    # Tool: record_success
    # ------------------------------------------------------------------
    @mcp.tool()
    def record_success(provider: str) -> Dict[str, Any]:
        """Record a successful lookup, reducing the provider's failure count.

        Args:
            provider: Provider id.

        Returns:
            Dict with keys: provider, recorded, recent_failures.
        """
        shared.record_success(provider)
        stats = shared.get_provider_stats_including_unknown(provider)
        return {
            "provider": provider,
            "recorded": True,
            "recent_failures": stats["recent_failures"] if stats else 0,
        }

    # ------------------------------------------------------------------
    # Tool: get_provider_stats
    # ------------------------------------------------------------------
    @mcp.tool()
    def get_provider_stats(
        provider: Optional[str] = None,
    ) -> Union[List[Dict[str, Any]], Dict[str, Any]]:
        """Return cost, reliability and reputation statistics.

        Args:
            provider: A single provider id, or omitted for every registered
                provider.

        Returns:
            List of stats dicts, or one stats dict when *provider* is given.
            Unknown providers with no reported outcomes yield a dict with an
            ``error`` key.
        """
        if provider is None:
            return [_jsonable_stats(s) for s in shared.get_provider_stats()]
        stats = shared.get_provider_stats_including_unknown(provider)
        if stats is None:
            return {"provider": provider, "error": "unknown provider"}
        return _jsonable_stats(stats)

    return mcp


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main() -> None:
    """Run the container-router MCP server over stdio."""
    parser = argparse.ArgumentParser(
        description="Container Router MCP Server — expose provider routing over MCP."
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Directory containing a config.json (default: packaged defaults).",
    )
    args = parser.parse_args()

    if not MCP_AVAILABLE:
        print(
            "ERROR: The 'mcp' package is not installed.\n"
            "Install it with: pip install container-router[mcp]",
            file=sys.stderr,
        )
        sys.exit(1)

    server = create_server(_get_router(args.config))
    server.run(transport="stdio")


if __name__ == "__main__":
    main()

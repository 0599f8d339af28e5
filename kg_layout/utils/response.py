"""Response envelopes returned by the MCP tools."""

from typing import Any, Dict, List, Optional


def is_success(result: Dict[str, Any]) -> bool:
    """Check whether a tool response is a success envelope."""
    return bool(result.get("ok"))


def success_response(
    data: Any,
    warnings: Optional[List[str]] = None
) -> Dict[str, Any]:
    """Create a successful response envelope.

    Args:
        data: The response data
        warnings: Optional list of warning messages

    Returns:
        {"ok": True, "data": ...}
    """
    response = {"ok": True, "data": data}
    if warnings:
        response["warnings"] = warnings
    return response


def error_response(
    message: str,
    code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Create an error response envelope.

    Args:
        message: Human-readable error message
        code: Machine-readable code (LAYOUT_TIMEOUT, EMPTY_LAYOUT, UNKNOWN_TOOL, TOOL_ERROR)
        details: Extra context, e.g. a recommended fallback layout

    Returns:
        {"ok": False, "error": {"message", "code"?, "details"?}}
    """
    error: Dict[str, Any] = {"message": message}
    if code:
        error["code"] = code
    if details:
        error["details"] = details
    return {"ok": False, "error": error}


__all__ = ["is_success", "success_response", "error_response"]

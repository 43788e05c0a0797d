"""
Display colors for distribution buckets
Applied to serialized reports on the way out of the API
"""

from typing import Any, Dict

DEFAULT_COLOR = "#6b7280"

PALETTE: Dict[str, Dict[str, str]] = {
    "status": {
        # deal stages
        "OPPORTUNITY": "#3b82f6",
        "PROPOSAL": "#8b5cf6",
        "NEGOTIATION": "#f59e0b",
        "CLOSED_WON": "#10b981",
        "CLOSED_LOST": "#6b7280",
        # task statuses
        "PENDING": "#6b7280",
        "IN_PROGRESS": "#3b82f6",
        "COMPLETED": "#10b981",
        "CANCELLED": "#ef4444",
    },
    "priority": {
        "LOW": "#10b981",
        "MEDIUM": "#f59e0b",
        "HIGH": "#f97316",
        "URGENT": "#ef4444",
    },
}


def color_for(dimension: str, label: str) -> str:
    return PALETTE.get(dimension, {}).get(label, DEFAULT_COLOR)


def with_colors(payload: Any) -> Any:
    """Copy of a serialized report where every distribution bucket carries a color"""
    if isinstance(payload, list):
        return [with_colors(item) for item in payload]
    if not isinstance(payload, dict):
        return payload

    colored = {key: with_colors(value) for key, value in payload.items()}
    if "dimension" in payload and "label" in payload and "percentage" in payload:
        colored["color"] = color_for(payload["dimension"], payload["label"])
    return colored

"""Pillow renderer for the dashboard frame."""

from .layout import DEFAULT_LAYOUT, LayoutMetrics
from .renderer import DashboardRenderer, RendererConfig

__all__ = [
    "DEFAULT_LAYOUT",
    "DashboardRenderer",
    "LayoutMetrics",
    "RendererConfig",
]

"""Output renderers for ContentKit results."""

from __future__ import annotations

from ContentKit.renderers.json import dumps, render_page, render_value

__all__ = ["dumps", "render_page", "render_value"]

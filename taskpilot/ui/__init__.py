"""
Terminal presentation helpers.
"""

from taskpilot.ui.colors import paint, supports_color

__all__ = ["paint", "supports_color"]

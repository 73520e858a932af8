# taskpilot/ui/colors.py
"""
ANSI color codes for terminal output.
"""

import os
import sys

ELECTRIC_CYAN = "\033[38;5;51m"    # Prompts / links
NEON_PURPLE = "\033[38;5;165m"     # Assistant label
MID_GRAY = "\033[38;5;250m"        # Muted labels
GLITCH_RED = "\033[38;5;196m"      # Errors
GLITCH_GREEN = "\033[38;5;46m"     # Success
NEON_YELLOW = "\033[38;5;226m"     # Warnings

RED = GLITCH_RED

BOLD = "\033[1m"
DIM = "\033[2m"
RESET = "\033[0m"


def supports_color(stream=None) -> bool:
    """True when the stream is a tty and NO_COLOR is not set."""
    stream = stream or sys.stdout
    if os.environ.get("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


def paint(text: str, *codes: str, stream=None) -> str:
    if not codes or not supports_color(stream):
        return text
    return "".join(codes) + text + RESET

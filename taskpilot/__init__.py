"""
taskpilot

Chat-driven command pipeline for a project-management backend.
Turns natural-language instructions into validated, dispatched actions.
"""

__version__ = "0.3.0"

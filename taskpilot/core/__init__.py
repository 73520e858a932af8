"""
Core pipeline: intents, registry, resolution, execution and conversation.
"""

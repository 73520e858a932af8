"""
Backend actions: the callables the dispatch table points at.
"""

"""moodlog package initializer.

Ensures the local ``moodlog`` package is resolved as a regular package
instead of falling back to namespace package resolution.
"""

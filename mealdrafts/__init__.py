"""Local draft and derivation data layer.

Persists meal-plan and grocery-list drafts on top of a key/value blob store,
derives grocery lists from meal plans and tracks unsaved changes.
"""

__version__ = "0.1.0"

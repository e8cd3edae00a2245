"""Domain exceptions for the Draft bounded context.

All domain exceptions inherit from DraftDomainError so the application layer
can catch draft errors uniformly and map them to result kinds.
"""

from typing import Optional


class DraftDomainError(Exception):
    """Base exception for draft domain."""

    pass


class StorageFailure(DraftDomainError):
    """Raised when the underlying store cannot be read or written.

    Examples:
    - Quota exceeded on write
    - Payload cannot be serialized to JSON
    - Connection to the store lost
    """

    pass


class DraftNotFound(DraftDomainError):
    """Raised when no draft exists for a valid identifier."""

    def __init__(self, draft_id: str):
        super().__init__(f"Draft {draft_id} not found")
        self.draft_id = draft_id


class CorruptDraft(DraftDomainError):
    """Raised when a stored blob exists but cannot be deserialized.

    Covers invalid JSON, missing envelope fields, a payload that does not
    match its kind and an envelope whose kind differs from the requested one.
    """

    def __init__(self, draft_id: str, reason: str):
        super().__init__(f"Draft {draft_id} is corrupt: {reason}")
        self.draft_id = draft_id
        self.reason = reason


class RecipeUnavailable(DraftDomainError):
    """Raised by recipe lookups when a recipe cannot be resolved.

    Non-fatal during grocery list generation: the recipe is skipped and
    reported back to the caller.
    """

    def __init__(self, recipe_id: str, reason: Optional[str] = None):
        message = f"Recipe {recipe_id} unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.recipe_id = recipe_id


class IdGenerationFailure(DraftDomainError):
    """Raised when no unique draft id could be generated.

    Only reachable if every bounded attempt collides with an existing id.
    """

    pass

"""Domain exceptions for the Draft bounded context."""

from mealdrafts.domain.draft.core.exceptions.domain_errors import (
    CorruptDraft,
    DraftDomainError,
    DraftNotFound,
    IdGenerationFailure,
    RecipeUnavailable,
    StorageFailure,
)

__all__ = [
    "DraftDomainError",
    "StorageFailure",
    "DraftNotFound",
    "CorruptDraft",
    "RecipeUnavailable",
    "IdGenerationFailure",
]

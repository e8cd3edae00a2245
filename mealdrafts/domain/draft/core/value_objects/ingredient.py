"""Ingredient value object.

A single ingredient line as returned by a recipe lookup. Quantities and
units are kept verbatim: the draft layer never converts between units.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class Ingredient:
    """Ingredient line of a recipe.

    Attributes:
        name: Display name (e.g., "Flour", "  flour ")
        quantity: Amount as given by the recipe (2, 0.5, "1/2")
        unit: Unit as given by the recipe ("cups", "g"), if any

    Examples:
        >>> Ingredient("Flour", 2, "cups").annotation()
        '2 cups'
        >>> Ingredient(" flour  ").normalized_name()
        'flour'
    """

    name: str
    quantity: Optional[Union[str, int, float]] = None
    unit: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate ingredient has a usable name."""
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Ingredient name cannot be empty")

    def normalized_name(self) -> str:
        """Aggregation key: lower-cased, trimmed, inner whitespace collapsed."""
        return " ".join(self.name.split()).lower()

    def display_name(self) -> str:
        """Trimmed name with inner whitespace collapsed, case preserved."""
        return " ".join(self.name.split())

    def annotation(self) -> Optional[str]:
        """Human readable quantity annotation, or None if nothing is known.

        Returns:
            "<quantity> <unit>", the quantity alone or the unit alone.
        """
        parts = []
        quantity = _format_quantity(self.quantity)
        if quantity:
            parts.append(quantity)
        if self.unit and self.unit.strip():
            parts.append(self.unit.strip())
        return " ".join(parts) if parts else None


def _format_quantity(quantity: Optional[Union[str, int, float]]) -> Optional[str]:
    if quantity is None or isinstance(quantity, bool):
        return None
    if isinstance(quantity, float):
        if quantity.is_integer():
            return str(int(quantity))
        return f"{quantity:g}"
    text = str(quantity).strip()
    return text or None

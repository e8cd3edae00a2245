"""Core draft model: entities, value objects, exceptions and results."""

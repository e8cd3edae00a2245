"""Draft bounded context: meal-plan and grocery-list drafts."""

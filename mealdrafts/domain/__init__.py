"""Domain layer for meal-plan and grocery-list drafts.

Business rules live here, decoupled from storage adapters and from the
callers that present drafts to the user.
"""

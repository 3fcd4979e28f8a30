"""
Domain layer for email intake business logic.

This layer contains:
- Data models (type-safe structures)
- Reply classification and body sanitization (pure, shareable)
- Business logic (email processing pipeline)
- Result types (explicit success/failure handling)
"""

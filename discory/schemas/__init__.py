"""
Discory Backend — Pydantic Request/Response Schemas
====================================================

Schemas are separate from the ORM models: they fix the API contract, decide
which columns leave the server, and drive the OpenAPI docs.

Naming convention on the wire:
    - Row-shaped payloads (catalogue items, comments, notifications) are
      snake_case, matching the column names the frontend already reads.
    - Envelope and status fields the frontend reads in camelCase (hasMore,
      isFollowing, isPublic, releaseYear, ...) use serialization aliases.
    - Request bodies accept camelCase (and snake_case) keys.
"""

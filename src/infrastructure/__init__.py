"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- storage: Object storage (GCS via the S3-compatible API)

These wrappers translate between external formats and our domain models.
"""

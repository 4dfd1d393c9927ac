"""
Operations Layer

Business logic that composes database methods and services into workflows.

- VisionOperations: screenshot -> reviewed match draft
- SessionOperations: transactional session ingestion and derived winners
"""

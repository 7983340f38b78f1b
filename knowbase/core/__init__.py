"""
Core business logic module.

Contains the ingestion pipeline, retrieval and the exception hierarchy.
"""

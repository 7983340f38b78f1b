"""Boundary layer: database, vector store and object storage adapters."""

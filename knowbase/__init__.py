"""
knowbase: knowledge-base ingestion and retrieval service.

Turns uploaded files, pasted text, Q&A pairs and scraped pages into a
pgvector index and serves ranked context passages to the chat handler.
"""

__version__ = "0.1.0"

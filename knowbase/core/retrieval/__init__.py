"""
Query-time retrieval.

Exports: Retriever, RetrievedContext, create_retrieval_tool
"""

from knowbase.core.retrieval.retrieval_tool import NO_CONTEXT_MESSAGE, create_retrieval_tool
from knowbase.core.retrieval.retriever import RetrievedContext, Retriever

__all__ = [
    "NO_CONTEXT_MESSAGE",
    "RetrievedContext",
    "Retriever",
    "create_retrieval_tool",
]

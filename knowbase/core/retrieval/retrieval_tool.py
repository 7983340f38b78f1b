"""
Retrieval tool for the chat agent.

Exposes Retriever as a LangChain tool the chat model can call with the
user's question.

Dependencies: langchain_core.tools
System role: Model-invokable retrieval
"""

import logging

from langchain_core.tools import BaseTool, tool

from knowbase.core.retrieval.retriever import Retriever

logger = logging.getLogger(__name__)

NO_CONTEXT_MESSAGE = "No relevant information found."


def create_retrieval_tool(retriever: Retriever, knowledge_base_id: int) -> BaseTool:
    """
    Create a retrieval tool bound to one knowledge base.

    Args:
        retriever: Retriever instance
        knowledge_base_id: Knowledge base the chat belongs to

    Returns:
        BaseTool: Async tool named ``get_information``
    """

    @tool
    async def get_information(question: str) -> str:
        """Get information from the knowledge base to answer the user's question.

        Args:
            question: The question to get context for, usually the last user message
        """
        contexts = await retriever.retrieve(question, knowledge_base_id)
        if not contexts:
            logger.info(f"{__name__}:get_information - No context found")
            return NO_CONTEXT_MESSAGE
        return ", ".join(context.content for context in contexts)

    return get_information

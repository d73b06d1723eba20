"""
Famops - LLM Client.

Provides the external content generator used by the orchestrator.
"""

from famops.llm.client import ContentGenerator, OpenAIContentGenerator, build_generator, get_client

__all__ = [
    "ContentGenerator",
    "OpenAIContentGenerator",
    "build_generator",
    "get_client",
]

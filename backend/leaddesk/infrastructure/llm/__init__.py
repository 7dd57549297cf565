"""
LLM Provider Package
"""
from leaddesk.infrastructure.llm.factory import LLMFactory
from leaddesk.infrastructure.llm.groq import GroqLLMProvider

__all__ = ["LLMFactory", "GroqLLMProvider"]

"""
Generative-content integration (Gemini).
"""

from learnpath.ai.gemini_client import GeminiClient
from learnpath.ai.generation_service import GenerationService, extract_json

__all__ = ["GeminiClient", "GenerationService", "extract_json"]

from src.integrations.openrouter.client import OpenRouterClient, get_ai_client, parse_extraction
from src.integrations.openrouter.schemas import ExtractionResult, TranscriptionResult

__all__ = [
    "OpenRouterClient",
    "get_ai_client",
    "parse_extraction",
    "ExtractionResult",
    "TranscriptionResult",
]

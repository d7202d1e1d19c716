from .generator import RowGenerator
from .llm import build_chat_model
from .models import CompletionResponse, Record

__all__ = ["CompletionResponse", "Record", "RowGenerator", "build_chat_model"]

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from langchain_core.prompts import ChatPromptTemplate
from openai import OpenAIError
from pydantic import ValidationError

from conndata.common.errors import DecodeError, ResourceExhaustedError, UpstreamError
from conndata.common.logger import get_logger
from conndata.connections.models import OpenAiConnectionConfig
from conndata.adapters.models import DatabaseColumn
from .llm import ChatModelFactory, build_chat_model
from .models import CompletionResponse, Record
from .prompts import GENERATE_ROWS_PROMPT, describe_columns

logger = get_logger(__name__)

JSON_RESPONSE_FORMAT: Dict[str, Any] = {"type": "json_object"}


class RowGenerator:
    """Asks a chat completion model for example rows shaped like a table."""

    def __init__(
        self,
        llm_factory: ChatModelFactory = build_chat_model,
        prompt: ChatPromptTemplate = GENERATE_ROWS_PROMPT,
    ):
        self._llm_factory = llm_factory
        self.prompt = prompt

    def build_messages(self, columns: Sequence[DatabaseColumn], user_prompt: str, count: int):
        return self.prompt.format_messages(
            count=count,
            user_prompt=user_prompt,
            columns=describe_columns(columns),
        )

    def generate(
        self,
        config: OpenAiConnectionConfig,
        model_name: str,
        columns: Sequence[DatabaseColumn],
        user_prompt: str,
        count: int,
    ) -> List[Record]:
        """
        Generates ``count`` records for ``columns``.

        Raises:
            UpstreamError: The model call failed or returned no candidates.
            ResourceExhaustedError: The model stopped on its token limit.
            DecodeError: The answer is not a JSON object with a ``data`` array of objects.
        """
        details = {"operation": "generate_rows", "model": model_name}
        messages = self.build_messages(columns, user_prompt, count)
        llm = self._llm_factory(config, model_name)

        try:
            result = llm.generate([messages], response_format=JSON_RESPONSE_FORMAT)
        except OpenAIError as e:
            logger.error(f"Completion request to {model_name} failed: {e}")
            raise UpstreamError(f"Unable to get chat completions: {e}", details=details) from e

        candidates = result.generations[0] if result.generations else []
        if not candidates:
            raise UpstreamError("Received no choices back from the completion model", details=details)

        choice = candidates[0]
        finish_reason = (choice.generation_info or {}).get("finish_reason")
        if finish_reason == "length":
            raise ResourceExhaustedError("Completion limit reached", details=details)

        try:
            response = CompletionResponse.model_validate_json(choice.text)
        except ValidationError as e:
            raise DecodeError(
                f"Unable to unmarshal completion content into expected response: {e}",
                details=details,
            ) from e

        logger.info(f"Generated {len(response.data)} records with {model_name}")
        return response.data

from typing import Callable

from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from conndata.common.settings import settings
from conndata.connections.models import OpenAiConnectionConfig

# (connection config, model name) -> chat model
ChatModelFactory = Callable[[OpenAiConnectionConfig, str], BaseChatModel]


def build_chat_model(config: OpenAiConnectionConfig, model_name: str) -> ChatOpenAI:
    """
    Builds the completion client for an openai connection.

    Sampling is fixed: temperature 1.0, top-p 1.0, no frequency penalty and a
    single candidate. ``OPENAI_API_URL`` is used when the connection has no url.
    """
    return ChatOpenAI(
        model=model_name,
        api_key=config.api_key,
        base_url=config.api_url or settings.openai_api_url,
        temperature=1.0,
        top_p=1.0,
        frequency_penalty=0,
        n=1,
        max_retries=0,
    )

"""Completion provider: LLM factory and the client handed to request handlers."""

from __future__ import annotations

import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from errors import CompletionError

logger = logging.getLogger(__name__)


def create_chat_model(
    provider_type: str,
    api_key: str,
    model_name: str,
    *,
    base_url: str | None = None,
    temperature: float | None = None,
    timeout: int | None = None,
    max_retries: int | None = None,
) -> BaseChatModel:
    kwargs: dict = {"model": model_name}
    if temperature is not None:
        kwargs["temperature"] = temperature
    if timeout is not None:
        kwargs["timeout"] = timeout
    if max_retries is not None:
        kwargs["max_retries"] = max_retries

    if provider_type == "openai":
        from langchain_openai import ChatOpenAI
        return ChatOpenAI(api_key=api_key, **kwargs)

    if provider_type == "anthropic":
        from langchain_anthropic import ChatAnthropic
        return ChatAnthropic(api_key=api_key, **kwargs)

    if provider_type == "openai_compatible":
        from langchain_openai import ChatOpenAI
        return ChatOpenAI(api_key=api_key, base_url=base_url, **kwargs)

    raise ValueError(f"Unsupported provider type: {provider_type}")


def _content_text(content) -> str:
    """Flatten an AIMessage content payload (str or list of blocks) to text."""
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class CompletionClient:
    """Sends an assembled prompt to the chat model and returns the generated text."""

    def __init__(self, llm: BaseChatModel, model_name: str = ""):
        self.llm = llm
        self.model_name = model_name

    def complete(self, prompt: str) -> str:
        try:
            response = self.llm.invoke([HumanMessage(content=prompt)])
        except Exception as exc:
            status = getattr(exc, "status_code", None)
            message = getattr(exc, "message", None) or str(exc)
            logger.error("Completion provider error (model=%s, status=%s): %s", self.model_name, status, message)
            raise CompletionError(message, status if isinstance(status, int) else None) from exc
        return _content_text(response.content)


def create_completion_client(config) -> CompletionClient:
    """Build the process-wide completion client from validated settings."""
    llm = create_chat_model(
        config.LLM_PROVIDER,
        config.provider_api_key,
        config.LLM_MODEL,
        base_url=config.LLM_BASE_URL or None,
        temperature=config.LLM_TEMPERATURE,
        timeout=config.LLM_TIMEOUT,
        max_retries=config.LLM_MAX_RETRIES,
    )
    logger.info("Completion client ready: provider=%s model=%s", config.LLM_PROVIDER, config.LLM_MODEL)
    return CompletionClient(llm, model_name=config.LLM_MODEL)

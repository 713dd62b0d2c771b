"""Ollama client implementing the text generation capability."""

import logging
import re

import httpx
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_ollama import ChatOllama
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config import settings
from src.errors import BackendTimeout
from src.models.dialogue import DialogueTurn

logger = logging.getLogger(__name__)

_THINK_PATTERN = re.compile(r"<think>.*?</think>", re.DOTALL)


class OllamaClient:
    """Client for Ollama chat models with bounded, retried transport."""

    def __init__(
        self,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        num_ctx: int | None = None,
    ):
        """Initialize Ollama client.

        Args:
            model: Model name (defaults to settings)
            base_url: Ollama base URL (defaults to settings)
            timeout: Per-call timeout in seconds (defaults to settings)
            num_ctx: Context window size (defaults to settings)
        """
        self.model = model or settings.ollama_model
        self.base_url = base_url or settings.ollama_base_url
        self.timeout = timeout or settings.llm_timeout_seconds
        self.num_ctx = num_ctx or settings.ollama_num_ctx

        self._llm: ChatOllama | None = None

        logger.info(
            f"OllamaClient initialized: model={self.model}, "
            f"num_ctx={self.num_ctx}, timeout={self.timeout}s"
        )

    @property
    def llm(self) -> ChatOllama:
        """Get or create the chat model instance."""
        if self._llm is None:
            self._llm = ChatOllama(
                model=self.model,
                base_url=self.base_url,
                num_ctx=self.num_ctx,
                temperature=settings.ollama_temperature,
                client_kwargs={"timeout": self.timeout},
            )
        return self._llm

    @staticmethod
    def to_chat_messages(
        system_prompt: str,
        messages: list[DialogueTurn],
    ) -> list[BaseMessage]:
        """Convert a system prompt and dialogue into LangChain messages."""
        chat: list[BaseMessage] = [SystemMessage(content=system_prompt)]
        for turn in messages:
            if turn.role == "assistant":
                chat.append(AIMessage(content=turn.content))
            else:
                chat.append(HumanMessage(content=turn.content))
        return chat

    @retry(
        retry=retry_if_exception_type((ConnectionError, httpx.ConnectError)),
        stop=stop_after_attempt(settings.llm_max_transport_retries),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        reraise=True,
    )
    def _invoke(self, chat: list[BaseMessage]) -> str:
        response = self.llm.invoke(chat)
        content = response.content
        if not isinstance(content, str):
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part)
                for part in content
            )
        return content

    def generate_text(self, system_prompt: str, messages: list[DialogueTurn]) -> str:
        """Generate a raw chat reply.

        Args:
            system_prompt: Instructions sent as the system message
            messages: Dialogue turns in order, oldest first

        Returns:
            Reply text with any <think> blocks removed

        Raises:
            BackendTimeout: If the call exceeds the configured timeout
        """
        chat = self.to_chat_messages(system_prompt, messages)
        logger.debug(f"Sending {len(chat)} messages to {self.model}")

        try:
            content = self._invoke(chat)
        except httpx.TimeoutException as e:
            raise BackendTimeout("LLM", self.timeout) from e

        return _THINK_PATTERN.sub("", content).strip()

    def is_available(self) -> bool:
        """Check if Ollama is available."""
        try:
            self.llm.invoke("test")
            return True
        except Exception as e:
            logger.warning(f"Ollama not available: {e}")
            return False

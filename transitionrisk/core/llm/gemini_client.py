"""
Gemini Reasoning Engine Client

LangChain wrapper around Google Gemini used for ontology resolution, batch
risk scoring and analyst questions. The client never raises on a failed
call: it hands back a mock GeminiResponse carrying the error, and callers
decide on the fallback.
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional
import os
import time

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from transitionrisk.config import settings
from transitionrisk.utils import get_logger

logger = get_logger(__name__)

MOCK_MODEL = "mock"


@dataclass
class GeminiConfig:
    """Model and transport settings for one client."""
    api_key: Optional[str] = None
    model: str = settings.gemini_model
    temperature: float = settings.llm_temperature
    max_output_tokens: int = 8192

    # "application/json" for scoring and ontology calls
    response_mime_type: Optional[str] = None

    request_timeout_seconds: int = settings.llm_timeout_seconds
    max_retries: int = settings.llm_max_retries
    use_mock: bool = settings.use_mock_llm

    def __post_init__(self):
        if self.api_key is None:
            self.api_key = (
                settings.gemini_api_key
                or os.environ.get("GEMINI_API_KEY")
                or os.environ.get("GOOGLE_API_KEY")
            )


@dataclass
class GeminiResponse:
    """Text returned by the engine plus call metadata."""
    text: str
    model: str
    finish_reason: str = "STOP"
    prompt_tokens: int = 0
    completion_tokens: int = 0
    latency_ms: float = 0.0
    is_mock: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        """True when the text came from the real engine."""
        return not self.is_mock and self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["latency_ms"] = round(self.latency_ms, 2)
        return data


def _content_text(content: Any) -> str:
    """Flatten LangChain message content, which may be a list of parts."""
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        parts.append(part.get("text", "") if isinstance(part, dict) else str(part))
    return "".join(parts)


class GeminiClient:
    """
    Reasoning engine client.

    Runs in mock mode when mocking is configured or no API key is found;
    every call then returns an unavailable response immediately.
    """

    def __init__(self, config: Optional[GeminiConfig] = None):
        self.config = config or GeminiConfig()
        self._calls = 0
        self._failures = 0
        self._last_call_at: Optional[float] = None
        self._llm = self._build_model()

    def _build_model(self) -> Optional[ChatGoogleGenerativeAI]:
        if self.config.use_mock:
            logger.info("Mock LLM configured - reasoning engine calls disabled")
            return None
        if not self.config.api_key:
            logger.warning("No Gemini API key found - reasoning engine runs in mock mode")
            return None

        options: Dict[str, Any] = {}
        if self.config.response_mime_type:
            options["response_mime_type"] = self.config.response_mime_type
        try:
            llm = ChatGoogleGenerativeAI(
                model=self.config.model,
                google_api_key=self.config.api_key,
                temperature=self.config.temperature,
                max_tokens=self.config.max_output_tokens,
                timeout=self.config.request_timeout_seconds,
                max_retries=self.config.max_retries,
                **options
            )
        except Exception as e:
            logger.error(f"Could not build Gemini model {self.config.model}: {e}")
            return None

        logger.info(f"Reasoning engine ready: {self.config.model}")
        return llm

    @property
    def is_available(self) -> bool:
        return self._llm is not None

    @staticmethod
    def _messages(prompt: str, system_instruction: Optional[str]) -> List[BaseMessage]:
        messages: List[BaseMessage] = []
        if system_instruction:
            messages.append(SystemMessage(content=system_instruction))
        messages.append(HumanMessage(content=prompt))
        return messages

    def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None
    ) -> GeminiResponse:
        """
        Send one prompt to the engine.

        Args:
            prompt: User prompt
            system_instruction: Optional system message

        Returns:
            GeminiResponse; is_mock is set when the engine was not reached
        """
        if not self.is_available:
            return self._unavailable(prompt)

        started = time.perf_counter()
        self._calls += 1
        self._last_call_at = time.time()
        try:
            message = self._llm.invoke(self._messages(prompt, system_instruction))
        except Exception as e:
            self._failures += 1
            logger.error(f"Gemini call failed after {(time.perf_counter() - started):.1f}s: {e}")
            return self._unavailable(prompt, error=str(e))

        return self._to_response(message, started)

    def _to_response(self, message: Any, started: float) -> GeminiResponse:
        usage = getattr(message, "usage_metadata", None) or {}
        metadata = getattr(message, "response_metadata", None) or {}
        return GeminiResponse(
            text=_content_text(getattr(message, "content", message)),
            model=self.config.model,
            finish_reason=str(metadata.get("finish_reason", "STOP")),
            prompt_tokens=usage.get("input_tokens", 0),
            completion_tokens=usage.get("output_tokens", 0),
            latency_ms=(time.perf_counter() - started) * 1000,
        )

    def _unavailable(self, prompt: str, error: Optional[str] = None) -> GeminiResponse:
        text = f"[MOCK RESPONSE - Error: {error}]" if error else "[MOCK RESPONSE - Gemini unavailable]"
        return GeminiResponse(
            text=text,
            model=MOCK_MODEL,
            finish_reason="MOCK",
            prompt_tokens=len(prompt.split()),
            is_mock=True,
            error=error,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Call and failure counters."""
        return {
            "is_available": self.is_available,
            "model": self.config.model,
            "calls": self._calls,
            "failures": self._failures,
            "last_call_at": self._last_call_at,
        }

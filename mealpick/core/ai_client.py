import logging
from typing import Optional
from datetime import datetime, timezone
from google import genai
from google.genai import types

from ..settings import settings

logger = logging.getLogger("mealpick.ai")


class AIRequestError(Exception):
    """The reasoning service failed, timed out or returned nothing usable."""


class AIUnavailableError(AIRequestError):
    """AI is disabled (mock mode) or no API key is configured."""


class AIClient:
    _instance = None

    def __init__(self):
        self.api_key = settings.gemini_api_key
        self.mode = settings.ai_mode  # "mock" or "gemini"
        self._client: Optional[genai.Client] = None
        self.last_error: Optional[str] = None
        self.last_error_at: Optional[datetime] = None

        if self.mode == "gemini" and self.api_key:
            self._client = genai.Client(api_key=self.api_key)

    @classmethod
    def get_instance(cls):
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def is_available(self) -> bool:
        return self.mode == "gemini" and self._client is not None

    def complete(
        self,
        prompt: str,
        timeout: Optional[float] = None,
        model: Optional[str] = None,
        max_output_tokens: Optional[int] = None,
    ) -> str:
        """
        Send a single-turn prompt and return the reply text.
        Raises AIRequestError on transport errors, timeouts and empty replies.
        """
        if not self.is_available():
            raise AIUnavailableError(f"AI is not available (mode={self.mode})")

        model_id = model or settings.gemini_text_model
        timeout = timeout if timeout is not None else settings.ai_timeout_seconds

        config = types.GenerateContentConfig(
            max_output_tokens=max_output_tokens,
            # HttpOptions.timeout is in milliseconds
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )

        try:
            logger.info(f"Calling model={model_id} prompt_chars={len(prompt)} timeout={timeout}s")
            response = self._client.models.generate_content(
                model=model_id,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            self.last_error = f"{e.__class__.__name__}: {str(e)}"
            self.last_error_at = datetime.now(timezone.utc)
            logger.error(f"Gemini generation failed: {e}")
            raise AIRequestError(self.last_error) from e

        text = response.text
        if not text or not text.strip():
            self.last_error = "Empty response"
            self.last_error_at = datetime.now(timezone.utc)
            logger.warning("Gemini returned empty response")
            raise AIRequestError("Empty response from AI service")

        return text.strip()


# Singleton instance access
ai_client = AIClient.get_instance()

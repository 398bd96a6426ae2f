import logging
from typing import Optional

import backoff
import httpx

from pharmarisk.core.config import ExplanationConfig, get_explanation_config
from pharmarisk.services.llm.prompt_builder import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

# Shared HTTP client for connection reuse, created on first use
_shared_client: Optional[httpx.AsyncClient] = None


def _get_shared_client() -> httpx.AsyncClient:
    global _shared_client
    if _shared_client is None or _shared_client.is_closed:
        _shared_client = httpx.AsyncClient(timeout=30.0)
    return _shared_client


def _is_client_error(e: Exception) -> bool:
    return isinstance(e, httpx.HTTPStatusError) and e.response.status_code < 500


class GroqClient:
    """
    Client for an OpenAI-compatible chat completions API (Groq by default).
    Returns None instead of raising so callers can fall back to a template.
    """

    def __init__(
        self,
        config: Optional[ExplanationConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or get_explanation_config()
        self.http_client = http_client

    @property
    def model(self) -> str:
        return self.config.model

    async def generate_text(self, prompt: str) -> Optional[str]:
        """
        Generates a deterministic clinical explanation.
        Low temperature for consistent, factual responses.
        """
        if not self.config.api_key:
            logger.warning("No API key configured for explanation model, skipping request")
            return None

        logger.info("Sending request to %s", self.config.api_url, extra={"model": self.model})

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }

        try:
            data = await self._post(payload)
            generated_text = data["choices"][0]["message"]["content"]
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            logger.error(f"Error communicating with explanation model: {str(e)}")
            return None
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Unexpected response shape from explanation model: {str(e)}")
            return None

        logger.info("Explanation request successful", extra={"response_length": len(generated_text or "")})
        return generated_text

    @backoff.on_exception(
        backoff.expo,
        (httpx.RequestError, httpx.HTTPStatusError),
        max_tries=lambda: get_explanation_config().max_tries,
        giveup=_is_client_error,
    )
    async def _post(self, payload: dict) -> dict:
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        client = self.http_client or _get_shared_client()
        response = await client.post(self.config.api_url, json=payload, headers=headers)
        response.raise_for_status()
        return response.json()

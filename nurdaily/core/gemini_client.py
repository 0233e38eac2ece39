"""Gemini client used by the AI-backed resolver stages, on the google-genai SDK."""
import json
import logging
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors, types

from nurdaily.core.errors import MalformedResponse, NetworkFailure, QuotaExceeded

logger = logging.getLogger(__name__)


class GeminiClient:
    """One prompt in, one text (or JSON document) out."""

    DEFAULT_MODEL = "gemini-2.0-flash"

    def __init__(self, api_key: str, model: Optional[str] = None, timeout: float = 20):
        self.model = model or self.DEFAULT_MODEL
        self.timeout = timeout
        # HttpOptions.timeout is in milliseconds
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )

    @classmethod
    def from_config(cls, config_data: dict, timeout: Optional[float] = None) -> Optional["GeminiClient"]:
        """Build a client from the gemini config section, or None when no key is set."""
        gemini = config_data.get("gemini") or {}
        api_key = gemini.get("api_key")
        # unresolved ${VAR} references count as missing
        if not api_key or str(api_key).startswith("$"):
            return None
        return cls(api_key, gemini.get("model"), timeout or gemini.get("timeout", 20))

    def generate_text(self, prompt: str, json_mode: bool = False) -> str:
        """Send one prompt and return the response text."""
        config = types.GenerateContentConfig(response_mime_type="application/json") if json_mode else None
        try:
            response = self.client.models.generate_content(model=self.model, contents=prompt, config=config)
        except errors.APIError as e:
            if e.code == 429:
                raise QuotaExceeded(f"Gemini quota exhausted: {e.message}") from e
            raise NetworkFailure(f"Gemini API error {e.code}: {e.message}") from e
        except httpx.HTTPError as e:
            raise NetworkFailure(f"Network error calling Gemini: {e}") from e

        text = response.text
        if not text or not text.strip():
            raise MalformedResponse("Empty Gemini response")
        return text.strip()

    def generate_json(self, prompt: str) -> Any:
        """Send one prompt in JSON mode and return the parsed document."""
        text = self.generate_text(prompt, json_mode=True)
        try:
            return json.loads(text)
        except ValueError as e:
            raise MalformedResponse(f"Gemini returned invalid JSON: {e}") from e

"""Gemini-backed coding assistant for procedure suggestions and explanations.

The assistant is slow and fallible, so callers that must not stall (the
store, request handlers) hand work to :meth:`ProcedureAssistant.submit`,
which runs it on a worker thread and returns a ``Future``.
"""
from __future__ import annotations

import json
import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests
from requests import Response
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

__all__ = [
    "AssistantError",
    "AssistantUnavailableError",
    "AssistantResponseError",
    "ProcedureSuggestion",
    "ProcedureAssistant",
]

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_FACTOR = 0.5
DEFAULT_MAX_WORKERS = 2

DEFAULT_API_KEY = os.getenv("GEMINI_API_KEY")
DEFAULT_BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
DEFAULT_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

SUGGESTION_INSTRUCTION = "You are a helpful dental coding assistant. Provide responses in JSON format."
EXPLANATION_INSTRUCTION = (
    "You are a friendly dental assistant explaining a procedure to a patient "
    "who has no medical background."
)
SUGGESTION_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "procedureCode": {
            "type": "STRING",
            "description": 'The suggested ADA CDT code, e.g., "D2740".',
        },
        "justification": {
            "type": "STRING",
            "description": "A brief, one-sentence justification for the code.",
        },
    },
    "required": ["procedureCode", "justification"],
}


class AssistantError(RuntimeError):
    """Base exception for assistant failures."""


class AssistantUnavailableError(AssistantError):
    """Raised when no API key is configured."""


class AssistantResponseError(AssistantError):
    """Raised when the model returns an error or an unusable payload."""


@dataclass(frozen=True)
class ProcedureSuggestion:
    code: str
    justification: str


class ProcedureAssistant:
    """Client for the Gemini ``generateContent`` endpoint."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = DEFAULT_API_KEY,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        max_workers: int = DEFAULT_MAX_WORKERS,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url must be provided")
        if not api_key:
            logger.error("GEMINI_API_KEY is not set; the procedure assistant is unavailable")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._session = session or self._build_session(
            max_retries=max_retries, backoff_factor=backoff_factor
        )
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers), thread_name_prefix="assistant"
        )

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def _build_session(self, *, max_retries: int, backoff_factor: float) -> requests.Session:
        session = requests.Session()
        retry_strategy = Retry(
            total=max_retries,
            read=max_retries,
            connect=max_retries,
            status=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=("POST",),
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def suggest_procedure(self, description: str) -> ProcedureSuggestion:
        """Suggest an ADA CDT code for a free-text clinical observation."""

        if not description or not description.strip():
            raise ValueError("description must be a non-empty string")
        text = self._generate(
            (
                "Based on the following dental observation, suggest a primary ADA CDT "
                "procedure code and a brief, one-sentence justification. "
                f'Observation: "{description.strip()}"'
            ),
            system_instruction=SUGGESTION_INSTRUCTION,
            response_schema=SUGGESTION_SCHEMA,
        )
        try:
            payload = json.loads(text)
            return ProcedureSuggestion(
                code=str(payload["procedureCode"]),
                justification=str(payload["justification"]),
            )
        except (ValueError, KeyError, TypeError) as exc:
            logger.error("Unparseable suggestion from assistant: %s", text[:512])
            raise AssistantResponseError("Assistant returned an invalid suggestion") from exc

    def explain_procedure(self, procedure_code: str, procedure_text: str) -> str:
        """Plain-language explanation of a procedure for a patient."""

        if not procedure_code:
            raise ValueError("procedure_code must be provided")
        return self._generate(
            (
                f'Explain the dental procedure "{procedure_code} - {procedure_text}" to a '
                "patient in simple, easy-to-understand terms. Be concise and reassuring."
            ),
            system_instruction=EXPLANATION_INSTRUCTION,
        )

    def submit(self, func: Callable[..., Any], *args: Any) -> Future:
        """Run ``func(*args)`` on the assistant worker pool."""

        return self._executor.submit(func, *args)

    def close(self) -> None:
        self._executor.shutdown(wait=False)
        self._session.close()

    def _generate(
        self,
        prompt: str,
        *,
        system_instruction: str,
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> str:
        if not self.api_key:
            raise AssistantUnavailableError(
                "Gemini AI client is not initialized. Please check your API key."
            )

        body: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "systemInstruction": {"parts": [{"text": system_instruction}]},
        }
        if response_schema is not None:
            body["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            }

        response = self._request(f"models/{self.model}:generateContent", body)
        try:
            data = response.json()
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.error("Unexpected assistant response shape: %s", response.text[:2048])
            raise AssistantResponseError("Assistant response did not contain any text") from exc

    def _request(self, path: str, body: Dict[str, Any]) -> Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self._session.post(
                url,
                json=body,
                headers={"x-goog-api-key": str(self.api_key), "Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Request to assistant failed: %s", exc)
            raise AssistantError("Failed to get a response from the AI assistant") from exc

        if response.status_code != 200:
            self._log_error_response(response)
            raise AssistantResponseError(
                f"Assistant responded with unexpected status {response.status_code}"
            )
        return response

    @staticmethod
    def _log_error_response(response: Response) -> None:
        content_type = response.headers.get("Content-Type", "")
        if "json" in content_type:
            try:
                parsed = response.json()
                logger.error("Assistant error response: status=%s body=%s", response.status_code, parsed)
                return
            except ValueError:
                pass
        logger.error(
            "Assistant error response: status=%s body=%s", response.status_code, response.text[:2048]
        )

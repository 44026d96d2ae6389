"""
Generative-AI client with a ranked model fallback list
"""
import json
import re
from typing import Callable, Iterable, List, Type, TypeVar

import requests
from pydantic import ValidationError as PydanticValidationError

from careerhub.helpers.prompts import ANALYSIS_PROMPT, CHAT_PROMPT
from careerhub.models.schemas import AnalysisResult, ChatMessage
from careerhub.utils.exceptions import ChatReplyError, ConfigurationError, UpstreamAnalysisError
from careerhub.utils.logging_config import get_logger
from careerhub.utils.settings import Settings

logger = get_logger(__name__)

T = TypeVar("T")

_FENCE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)


class ModelQuotaError(Exception):
    """The model refused the request for rate-limit or quota reasons"""


class ModelRequestError(Exception):
    """The model request failed or returned an unusable reply"""


class GeminiProvider:
    """One model behind the generateContent REST endpoint: prompt in, text out."""

    def __init__(self, model: str, api_key: str, base_url: str, timeout: int = 120):
        self.model = model
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def generate(self, prompt: str) -> str:
        if not self.api_key:
            raise ConfigurationError("Gemini API key not configured", config_key="GEMINI_API_KEY")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            resp = requests.post(
                url,
                json={"contents": [{"parts": [{"text": prompt}]}]},
                headers={"Content-Type": "application/json", "x-goog-api-key": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ModelRequestError(str(e)) from e

        if resp.status_code == 429:
            raise ModelQuotaError(f"Quota exceeded for {self.model}")
        if not resp.ok:
            raise ModelRequestError(_error_message(resp))

        try:
            data = resp.json()
            return data["candidates"][0]["content"]["parts"][0]["text"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ModelRequestError(f"Unexpected response shape: {e}") from e


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return f"HTTP {resp.status_code}"


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text).strip()


def parse_analysis(reply: str) -> AnalysisResult:
    try:
        return AnalysisResult.model_validate(json.loads(strip_code_fences(reply)))
    except (ValueError, PydanticValidationError) as e:
        raise ModelRequestError(f"Malformed analysis reply: {e}") from e


def build_transcript(history: Iterable[ChatMessage]) -> str:
    return "\n".join(
        f"{'User' if msg.role == 'user' else 'AI'}: {msg.content}" for msg in history
    )


class GenerativeClient:
    """Asks each provider in rank order, once, until one answers usably."""

    def __init__(self, providers: List[GeminiProvider]):
        if not providers:
            raise ConfigurationError("At least one AI model must be configured", config_key="AI_MODELS")
        self.providers = providers

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerativeClient":
        return cls([
            GeminiProvider(model, settings.gemini_api_key, settings.gemini_base_url, settings.ai_timeout)
            for model in settings.ai_models
        ])

    @property
    def models(self) -> List[str]:
        return [p.model for p in self.providers]

    def _run(self, prompt: str, parse: Callable[[str], T], purpose: str,
             failure: Type[UpstreamAnalysisError] = UpstreamAnalysisError) -> T:
        last_error = None
        for provider in self.providers:
            logger.info(f"Attempting {purpose} with model: {provider.model}")
            try:
                return parse(provider.generate(prompt))
            except ModelQuotaError:
                logger.warning(f"Quota exceeded for {provider.model}, trying next model...")
            except ModelRequestError as e:
                last_error = f"Failed with {provider.model}: {e}"
                logger.error(f"Model error during {purpose}: {last_error}")

        raise failure(
            last_error or "Every configured model exceeded its quota",
            models=self.models,
        )

    def analyze_resume(self, resume_text: str, job_description: str) -> AnalysisResult:
        prompt = ANALYSIS_PROMPT.format(resume_text=resume_text, job_description=job_description)
        return self._run(prompt, parse_analysis, "analysis")

    def chat_reply(self, history: List[ChatMessage]) -> str:
        prompt = CHAT_PROMPT.format(transcript=build_transcript(history))
        return self._run(prompt, lambda reply: reply.strip(), "chat response", failure=ChatReplyError)

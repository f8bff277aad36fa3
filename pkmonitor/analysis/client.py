"""Remote analysis clients.

``GeminiAnalysisClient`` posts a down-sampled copy of a session to the
Gemini ``generateContent`` endpoint and asks for a JSON answer constrained
by :data:`~pkmonitor.analysis.prompt.RESPONSE_SCHEMA`.  Calls are blocking;
the runner moves them off the event loop.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Sequence
from typing import Any, Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..config import AnalysisConfig
from ..domain_models import AnalysisResult, Sample, SessionStats
from .prompt import RESPONSE_SCHEMA, build_prompt, sample_for_analysis

LOGGER = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"


class AnalysisError(RuntimeError):
    """The remote analysis could not produce a usable result."""


class AnalysisClient(Protocol):
    def analyze(self, samples: Sequence[Sample], stats: SessionStats) -> AnalysisResult: ...


def _validate_url(url: str) -> None:
    if not url.startswith("https://"):
        raise ValueError(f"Refusing non-HTTPS URL for analysis request: {url}")


def _response_text(payload: Any) -> str:
    try:
        parts = payload["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        raise AnalysisError("Analysis response contained no candidate") from None
    text = "".join(str(part.get("text", "")) for part in parts if isinstance(part, dict))
    if not text.strip():
        raise AnalysisError("Analysis response was empty")
    return text


class GeminiAnalysisClient:
    def __init__(
        self,
        *,
        model: str,
        api_key: str,
        timeout_s: float = 30.0,
        sample_stride: int = 10,
        max_samples: int = 200,
        api_base: str = GEMINI_API_BASE,
    ) -> None:
        self.model = model
        self._api_key = api_key
        self.timeout_s = timeout_s
        self.sample_stride = sample_stride
        self.max_samples = max_samples
        self.api_base = api_base.rstrip("/")

    @classmethod
    def from_config(cls, config: AnalysisConfig) -> GeminiAnalysisClient:
        api_key = os.environ.get(config.api_key_env, "")
        if not api_key:
            LOGGER.info(
                "No analysis API key in $%s; analysis requests will fail until it is set",
                config.api_key_env,
            )
        return cls(
            model=config.model,
            api_key=api_key,
            timeout_s=config.timeout_s,
            sample_stride=config.sample_stride,
            max_samples=config.max_samples,
        )

    def request_body(self, samples: Sequence[Sample], stats: SessionStats) -> dict[str, Any]:
        picked = sample_for_analysis(
            samples, stride=self.sample_stride, max_samples=self.max_samples
        )
        return {
            "contents": [{"parts": [{"text": build_prompt(picked, stats)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    def analyze(self, samples: Sequence[Sample], stats: SessionStats) -> AnalysisResult:
        if not self._api_key:
            raise AnalysisError("No analysis API key configured")
        url = f"{self.api_base}/{self.model}:generateContent"
        _validate_url(url)
        body = json.dumps(self.request_body(samples, stats)).encode("utf-8")
        req = Request(
            url,
            data=body,
            method="POST",
            headers={"Content-Type": "application/json", "x-goog-api-key": self._api_key},
        )
        LOGGER.info("Requesting analysis of %d sample(s) from %s", len(samples), self.model)
        try:
            with urlopen(req, timeout=self.timeout_s) as resp:  # noqa: S310
                payload = json.loads(resp.read().decode("utf-8"))
        except HTTPError as exc:
            raise AnalysisError(f"Analysis service returned HTTP {exc.code}") from exc
        except (URLError, TimeoutError, OSError) as exc:
            raise AnalysisError(f"Analysis service unreachable: {exc}") from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise AnalysisError("Analysis service returned invalid JSON") from exc
        try:
            answer = json.loads(_response_text(payload))
            return AnalysisResult.from_dict(answer)
        except json.JSONDecodeError as exc:
            raise AnalysisError("Analysis answer is not valid JSON") from exc
        except ValueError as exc:
            raise AnalysisError(f"Analysis answer is incomplete: {exc}") from exc

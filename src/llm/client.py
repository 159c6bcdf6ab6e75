"""
Generation client: the single seam between the agents and the text-generation
backend.

    data = await client.generate(system_instruction, prompt, expected_keys=["plan"], stage="planning")

`generate` makes one best-effort request (no retries) and either returns the
parsed JSON object or raises GenerationFailure. It only checks that the reply
is a JSON object carrying the expected top-level keys; the shape of the
values is the caller's business.
"""

import json
import os
import re
import time
from typing import Any, Dict, Iterable, Optional

import google.generativeai as genai

from src.utils.errors import GenerationFailure
from src.utils.logger import AgentLogger

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)


def extract_json_text(response_text: Optional[str]) -> str:
    """Strip Markdown code fences the model sometimes wraps JSON in."""
    if not response_text:
        return ""
    match = _FENCE_RE.search(response_text)
    if match:
        return match.group(1).strip()
    return response_text.strip()


def parse_json_response(
    response_text: Optional[str],
    expected_keys: Iterable[str] = (),
    stage: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Parse-or-fail: returns a dict holding every expected key, otherwise
    raises GenerationFailure.
    """
    cleaned = extract_json_text(response_text)
    if not cleaned:
        raise GenerationFailure("Backend returned an empty response", stage=stage)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise GenerationFailure("Backend returned non-JSON text", stage=stage, original=e)
    if not isinstance(data, dict):
        raise GenerationFailure(
            f"Expected a JSON object, got {type(data).__name__}", stage=stage
        )
    missing = [k for k in expected_keys if k not in data]
    if missing:
        raise GenerationFailure(f"Response is missing expected keys {missing}", stage=stage)
    return data


class GenerationClient:
    """
    Base adapter. Subclasses implement `_complete`, which sends one request
    and returns the raw response text.
    """

    def __init__(self, run_id: Optional[str] = None):
        self.run_id = run_id
        self.logger = AgentLogger("GenerationClient", run_id=self.run_id)

    async def _complete(
        self,
        system_instruction: str,
        prompt: str,
        model: Optional[str] = None,
        stage: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    async def generate(
        self,
        system_instruction: str,
        prompt: str,
        expected_keys: Iterable[str] = (),
        *,
        stage: Optional[str] = None,
        model: Optional[str] = None,
    ) -> Dict[str, Any]:
        expected_keys = list(expected_keys)
        start = time.monotonic()
        meta = {"stage": stage, "model": model, "prompt_length": len(prompt)}
        try:
            text = await self._complete(system_instruction, prompt, model=model, stage=stage)
        except Exception as e:
            meta["latency_ms"] = int((time.monotonic() - start) * 1000)
            meta["error"] = repr(e)
            self.logger.error("llm_call", "Generation backend call failed", meta)
            raise GenerationFailure("Generation backend call failed", stage=stage, original=e) from e

        meta["latency_ms"] = int((time.monotonic() - start) * 1000)
        meta["response_length"] = len(text or "")
        try:
            data = parse_json_response(text, expected_keys, stage=stage)
        except GenerationFailure as e:
            meta["error"] = str(e)
            self.logger.warn("llm_parse", "Unusable generation response", meta)
            raise
        self.logger.info("llm_call", "Generation call succeeded", meta)
        return data


class GeminiGenerationClient(GenerationClient):
    """
    Gemini-backed client. The API key is read from the environment at
    construction; a missing key only surfaces, as a GenerationFailure, when a
    call is made.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gemini-2.5-flash",
        temperature: float = 0.2,
        timeout_seconds: float = 60,
        api_key_env: str = "GEMINI_API_KEY",
        run_id: Optional[str] = None,
    ):
        super().__init__(run_id=run_id)
        self.api_key_env = api_key_env
        self.api_key = api_key or os.getenv(api_key_env)
        self.model = model
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds
        self._configured = False

    async def _complete(
        self,
        system_instruction: str,
        prompt: str,
        model: Optional[str] = None,
        stage: Optional[str] = None,
    ) -> str:
        if not self.api_key:
            raise ValueError(f"No Gemini API key configured (set {self.api_key_env})")
        if not self._configured:
            genai.configure(api_key=self.api_key)
            self._configured = True

        gm = genai.GenerativeModel(
            model_name=model or self.model,
            system_instruction=system_instruction,
        )
        response = await gm.generate_content_async(
            prompt,
            generation_config=genai.types.GenerationConfig(
                temperature=self.temperature,
                response_mime_type="application/json",
            ),
            request_options={"timeout": self.timeout_seconds},
        )
        return response.text


def build_generation_client(llm_cfg: Dict[str, Any], run_id: Optional[str] = None) -> GenerationClient:
    provider = llm_cfg.get("provider", "gemini")
    if provider != "gemini":
        raise ValueError(f"Unknown generation provider: {provider}")
    return GeminiGenerationClient(
        model=llm_cfg.get("model_fast", "gemini-2.5-flash"),
        temperature=llm_cfg.get("temperature", 0.2),
        timeout_seconds=llm_cfg.get("timeout_seconds", 60),
        api_key_env=llm_cfg.get("api_key_env", "GEMINI_API_KEY"),
        run_id=run_id,
    )

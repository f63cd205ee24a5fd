"""Gemini Classifier Adapter - multimodal material/volume estimation.

Sends the waste photo plus an instruction prompt to Gemini's generateContent
REST endpoint and hands back the free-text reply. Parsing that reply is a
separate, fallible step (parse_classifier_response) since the model output is
untrusted text.
"""
import base64
import json
import logging
import re
from typing import Any, Optional, Protocol, Sequence

import httpx
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator

from waste_estimator.core.config import settings
from waste_estimator.core.errors import ClassifierError, ClassifierResponseParseError
from waste_estimator.models.schemas import MoistureLevel

logger = logging.getLogger(__name__)


# =============================================================================
# PROMPT
# =============================================================================

PROMPT_TEMPLATE = """You are an expert AI waste analyzer for municipal solid waste management in rural India (Gram Panchayat level).

Task: analyze this waste image and estimate what is in it and how much there is.

Context:
{container_context}

Instructions:
1. Identify the dominant waste material type, one of: {materials}
2. Estimate the volume of visible waste in liters
   - If a container volume is given, estimate how full it is and derive the volume from that
   - Otherwise estimate the pile/heap volume from its size relative to the surroundings
3. Assess the moisture level: dry, moist or wet
4. Estimate the contamination level from 0.0 to 1.0 (how mixed the waste is)
5. Rate the image quality: good, medium or poor
6. Give a brief reason for your estimates

Output format (JSON only, no other text):
{{
  "material": "one of the allowed material types",
  "volume_liters_estimate": number,
  "volume_confidence": number (0.0-1.0),
  "material_confidence": number (0.0-1.0),
  "fullness_percent": number (0-100) or null,
  "moisture_level": "dry" | "moist" | "wet" | null,
  "contamination_level": number (0.0-1.0) or null,
  "image_quality": "good" | "medium" | "poor",
  "reasoning_short": "brief explanation"
}}

Important:
- Be conservative with volume estimates to avoid overestimation
- Indian municipal waste is often organic-heavy and mixed
- Return ONLY valid JSON, no markdown formatting"""


def build_estimation_prompt(
    materials: Sequence[str],
    container_type: Optional[str] = None,
    container_volume_liters: Optional[float] = None,
) -> str:
    """Render the instruction prompt, including any container context."""
    context = [
        f"- Container type: {container_type}" if container_type else "- No container specified",
        (
            f"- Known container volume: {container_volume_liters:g} liters"
            if container_volume_liters
            else "- Container volume unknown"
        ),
    ]
    return PROMPT_TEMPLATE.format(
        container_context="\n".join(context),
        materials=", ".join(materials),
    )


# =============================================================================
# RESPONSE PARSING
# =============================================================================

_LEADING_FENCE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```$")


class ClassifierResult(BaseModel):
    """Fields the estimation pipeline consumes from the classifier reply."""
    model_config = ConfigDict(extra="allow", allow_inf_nan=False)

    material: Optional[str] = None
    volume_liters_estimate: Optional[float] = Field(None, ge=0)
    volume_confidence: Optional[float] = None
    material_confidence: Optional[float] = None
    fullness_percent: Optional[float] = None
    moisture_level: Optional[MoistureLevel] = None
    contamination_level: Optional[float] = None
    image_quality: Optional[str] = None
    reasoning_short: Optional[str] = None

    _raw: dict[str, Any] = PrivateAttr(default_factory=dict)

    @field_validator("material", "image_quality", mode="before")
    @classmethod
    def _normalise_label(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower() or None
        return v

    @field_validator("moisture_level", mode="before")
    @classmethod
    def _drop_unknown_moisture(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            return v if v in {m.value for m in MoistureLevel} else None
        return v

    @property
    def raw(self) -> dict[str, Any]:
        """The reply JSON exactly as decoded."""
        return self._raw


def strip_code_fences(text: str) -> str:
    """Remove a leading ```/```json marker and a trailing ``` marker."""
    stripped = text.strip()
    stripped = _LEADING_FENCE.sub("", stripped)
    stripped = _TRAILING_FENCE.sub("", stripped)
    return stripped.strip()


def _reject_non_finite(token: str) -> float:
    raise ClassifierResponseParseError(f"Classifier returned non-finite number: {token}")


def parse_classifier_response(text: str) -> ClassifierResult:
    """Decode the classifier reply into a ClassifierResult.

    Raises:
        ClassifierResponseParseError: reply is not a JSON object with usable fields
    """
    payload_text = strip_code_fences(text or "")
    try:
        payload = json.loads(payload_text, parse_constant=_reject_non_finite)
    except json.JSONDecodeError as e:
        raise ClassifierResponseParseError(
            f"Classifier returned malformed JSON: {e.msg} at position {e.pos}",
            details=payload_text[:500],
        ) from e

    if not isinstance(payload, dict):
        raise ClassifierResponseParseError(
            f"Classifier returned JSON {type(payload).__name__}, expected an object",
            details=payload_text[:500],
        )

    try:
        result = ClassifierResult.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ClassifierResponseParseError(
            f"Classifier returned unusable fields: {fields}",
            details=payload,
        ) from e

    result._raw = payload
    return result


# =============================================================================
# GEMINI ADAPTER
# =============================================================================

class WasteClassifier(Protocol):
    async def classify(self, image: bytes, mime_type: str, prompt: str) -> str:
        """Return the model's free-text reply for an image and prompt."""
        ...


class GeminiClassifier:
    """Calls Gemini generateContent with an inline base64 image."""

    GENERATION_CONFIG = {
        "temperature": 0.4,
        "topP": 1,
        "topK": 32,
        "maxOutputTokens": 2048,
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GOOGLE_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.api_base = (api_base or settings.GEMINI_API_BASE).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.GEMINI_TIMEOUT_SECONDS
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    def build_payload(self, image: bytes, mime_type: str, prompt: str) -> dict[str, Any]:
        return {
            "contents": [
                {
                    "parts": [
                        {"text": prompt},
                        {
                            "inline_data": {
                                "mime_type": mime_type,
                                "data": base64.b64encode(image).decode("utf-8"),
                            }
                        },
                    ]
                }
            ],
            "generationConfig": self.GENERATION_CONFIG,
        }

    async def classify(self, image: bytes, mime_type: str, prompt: str) -> str:
        if not self.api_key:
            raise ClassifierError("GOOGLE_API_KEY is not configured for the Gemini API")

        logger.info(f"[GEMINI] Classifying {len(image)} byte {mime_type} image with {self.model}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.endpoint,
                    headers={
                        "x-goog-api-key": self.api_key,
                        "Content-Type": "application/json",
                    },
                    json=self.build_payload(image, mime_type, prompt),
                )
        except httpx.TimeoutException as e:
            raise ClassifierError(f"Gemini API timed out after {self.timeout:g}s") from e
        except httpx.RequestError as e:
            raise ClassifierError(f"Gemini API unreachable: {e}") from e

        if response.status_code in (401, 403):
            raise ClassifierError(
                f"Gemini API rejected the API key (HTTP {response.status_code})",
                details=response.text[:500],
            )
        if response.status_code >= 400:
            raise ClassifierError(
                f"Gemini API request failed (HTTP {response.status_code})",
                details=response.text[:500],
            )

        return self._extract_text(response.json())

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            feedback = data.get("promptFeedback")
            raise ClassifierError(f"Gemini API returned no candidates (promptFeedback={feedback})")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        if not text.strip():
            reason = candidates[0].get("finishReason")
            raise ClassifierError(f"Gemini API returned an empty reply (finishReason={reason})")
        return text.strip()

"""Gemini adapter for the generative capability.

The adapter owns output sanitization: model text is stripped of markdown code
fences and parsed as JSON here, so callers only ever see Python data or one
of the generation exceptions.
"""

import json
import re
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from recipe_aggregator.domain.models import RawRecord
from recipe_aggregator.logging import get_logger

from .exceptions import (
    GenerationConfigurationError,
    GenerationTimeout,
    GenerationUnavailable,
    InvalidOutput,
    QuotaExceeded,
)
from .prompts import (
    RECIPE_SYSTEM_INSTRUCTION,
    SUGGESTION_SYSTEM_INSTRUCTION,
    build_suggestion_prompt,
)

logger = get_logger(__name__, component="generation")

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```$", re.DOTALL)


def strip_code_fences(text: Optional[str]) -> str:
    """Remove a surrounding markdown code fence from model output.

    Example:
        >>> strip_code_fences('```json\\n[{"name": "Soup"}]\\n```')
        '[{"name": "Soup"}]'
    """
    if not text:
        return ""
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def parse_generated_json(text: Optional[str]) -> Any:
    """Parse model output as JSON after stripping code fences.

    Raises:
        InvalidOutput: If the output is empty or not valid JSON
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise InvalidOutput("Model returned empty output", raw_output=text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise InvalidOutput(f"Model output is not valid JSON: {e}", raw_output=text) from e


class GeminiRecipeGenerator:
    """GenerativeCapability implementation backed by google-generativeai.

    Attributes:
        model_name: Gemini model identifier
        request_timeout: Per-request timeout passed to the client library
    """

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = "gemini-2.5-flash",
        request_timeout: Optional[float] = None,
    ) -> None:
        if not api_key:
            raise GenerationConfigurationError("Missing Gemini API key.")

        self.model_name = model_name
        self.request_timeout = request_timeout
        genai.configure(api_key=api_key)

    def generate(self, prompt: str, schema: Dict[str, Any]) -> List[RawRecord]:
        """Generate recipe records for a rendered prompt.

        The schema is already embedded in the prompt; the model is asked for
        JSON output. A top-level object with a ``recipes`` list is unwrapped.

        Raises:
            QuotaExceeded, GenerationTimeout, GenerationUnavailable, InvalidOutput
        """
        text = self._generate_text(
            prompt,
            system_instruction=RECIPE_SYSTEM_INSTRUCTION,
            generation_config={"response_mime_type": "application/json"},
        )
        data = parse_generated_json(text)

        if isinstance(data, dict) and isinstance(data.get("recipes"), list):
            data = data["recipes"]
        if not isinstance(data, list):
            raise InvalidOutput(
                f"Expected a JSON array of recipes, got {type(data).__name__}",
                raw_output=text,
            )
        return data

    def complete(self, partial_query: str) -> str:
        """Return the model's single-line completion for a partial query."""
        text = self._generate_text(
            build_suggestion_prompt(partial_query),
            system_instruction=SUGGESTION_SYSTEM_INSTRUCTION,
        )
        lines = strip_code_fences(text).splitlines()
        return lines[0].strip().strip('"') if lines else ""

    def _generate_text(
        self,
        prompt: str,
        system_instruction: str,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> str:
        model = genai.GenerativeModel(
            model_name=self.model_name,
            system_instruction=system_instruction,
        )
        request_options = {"timeout": self.request_timeout} if self.request_timeout else None

        try:
            response = model.generate_content(
                prompt,
                generation_config=generation_config,
                request_options=request_options,
            )
            return response.text
        except google_exceptions.ResourceExhausted as e:
            raise QuotaExceeded(f"Gemini quota exhausted: {e}") from e
        except google_exceptions.DeadlineExceeded as e:
            raise GenerationTimeout(
                f"Gemini request timed out: {e}", timeout=self.request_timeout
            ) from e
        except (
            google_exceptions.ServiceUnavailable,
            google_exceptions.InternalServerError,
        ) as e:
            raise GenerationUnavailable(f"Gemini temporarily unavailable: {e}") from e
        except (
            google_exceptions.PermissionDenied,
            google_exceptions.Unauthenticated,
            google_exceptions.NotFound,
        ) as e:
            raise GenerationConfigurationError(f"Gemini rejected the request: {e}") from e
        except google_exceptions.GoogleAPIError as e:
            logger.error(
                "Unexpected Gemini API error",
                extra={
                    "event": "generation.request.error",
                    "error_type": type(e).__name__,
                    "model": self.model_name,
                },
            )
            raise GenerationUnavailable(f"Gemini request failed: {e}") from e
        except ValueError as e:
            # response.text raises ValueError when the candidate was blocked or empty
            raise InvalidOutput(f"Gemini returned no usable text: {e}") from e

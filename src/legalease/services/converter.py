"""
Legal text converter - language model calls behind the conversion workflow.
"""
import asyncio
import json
import re
from dataclasses import dataclass
from typing import Any, List, Optional

import structlog

from ..config import settings
from ..errors import UpstreamError, UpstreamTimeout
from .llm import LLMClient
from .prompts import PromptBuilder

logger = structlog.get_logger()

LEGAL_TO_PLAIN = "legal-to-plain"
PLAIN_TO_LEGAL = "plain-to-legal"
CONVERSION_TYPES = (LEGAL_TO_PLAIN, PLAIN_TO_LEGAL)

_JSON_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)


@dataclass
class ConversionOutput:
    converted_text: str
    key_terms: Optional[List[Any]] = None
    summary: Optional[str] = None


class LegalTextConverter:
    """Runs the prompts for one conversion against the language model."""

    def __init__(self, llm: LLMClient, prompts: Optional[PromptBuilder] = None):
        self.llm = llm
        self.prompts = prompts or PromptBuilder()

    async def _complete(self, template: str, text: str) -> str:
        system_prompt, user_prompt = self.prompts.build(template, text)
        response = await self.llm.generate(
            user_prompt,
            system_prompt=system_prompt,
            temperature=settings.LLM_TEMPERATURE,
            max_tokens=settings.LLM_MAX_TOKENS,
        )
        if response.timed_out:
            raise UpstreamTimeout("Language model request timed out", service="llm", detail=response.error)
        if not response.success:
            raise UpstreamError("Conversion service unavailable", service="llm",
                                detail=response.error or "empty completion")
        return response.content.strip()

    async def convert(self, text: str, conversion_type: str) -> ConversionOutput:
        if conversion_type == PLAIN_TO_LEGAL:
            return ConversionOutput(converted_text=await self._complete(PLAIN_TO_LEGAL, text))

        converted, raw_terms, summary = await asyncio.gather(
            self._complete(LEGAL_TO_PLAIN, text),
            self._complete("key_terms", text),
            self._complete("summary", text),
        )
        return ConversionOutput(
            converted_text=converted,
            key_terms=parse_key_terms(raw_terms),
            summary=summary,
        )


def parse_key_terms(raw: str) -> Optional[List[Any]]:
    """Parse the key-terms completion; ``None`` when it is not a JSON list."""
    try:
        data = json.loads(_JSON_FENCE.sub("", raw).strip())
    except json.JSONDecodeError:
        logger.warning("Key terms completion is not JSON", preview=raw[:80])
        return None
    if isinstance(data, dict) and isinstance(data.get("terms"), list):
        data = data["terms"]
    return data if isinstance(data, list) else None

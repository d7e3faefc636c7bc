"""ai_suggest.py — Ask a chat model for the canonical name of an unknown plant.

Only used after the local dataset and the remote store have both missed. The
answer is a *name*, never a record: the resolver looks the name up again in
the local and remote tiers.

Any OpenAI-compatible endpoint works; the default configuration points at
Perplexity's ``sonar-pro``.

Usage::

    suggester = ChatNameSuggester(api_key="...", base_url="https://api.perplexity.ai")
    await suggester.suggest("genda phool")   # "Marigold"
"""
from __future__ import annotations

import logging
import re
from typing import Optional, Protocol

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

_PROMPT = """You are a horticulture expert specializing in Indian home gardening.

A gardener typed the plant name "{name}". It may be misspelled, a regional or
Hindi name, or an informal name.

Reply with ONLY the standard English common name of the plant (for example
"Marigold" or "Brinjal"). No explanation, no punctuation, no markdown.
If you cannot identify a plant, reply with UNKNOWN."""

_NO_ANSWER = {"unknown", "none", "n/a", "na", "not sure"}
_MAX_NAME_LENGTH = 60


class NameSuggester(Protocol):
    async def suggest(self, raw_name: str) -> Optional[str]: ...


def clean_suggestion(text: Optional[str]) -> Optional[str]:
    """
    Reduce a model reply to a bare plant name.

    Keeps the first non-empty line, strips markdown emphasis, quotes and
    trailing punctuation. Returns ``None`` for empty or "unknown" replies and
    for replies too long to be a name.
    """
    if not text:
        return None
    line = next((ln for ln in text.splitlines() if ln.strip()), "")
    name = re.sub(r"[*_`\"']", "", line).strip().rstrip(".!?:;,").strip()
    if not name or name.lower() in _NO_ANSWER or len(name) > _MAX_NAME_LENGTH:
        return None
    return name


class ChatNameSuggester:
    """
    ``NameSuggester`` backed by a chat completions endpoint.

    Errors from the endpoint propagate; the resolver treats them as a miss.

    Args:
        api_key:     Key for the endpoint.
        base_url:    OpenAI-compatible base URL.
        model:       Chat model name.
        temperature: Sampling temperature (kept low for stable names).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.perplexity.ai",
        model: str = "sonar-pro",
        temperature: float = 0.2,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def suggest(self, raw_name: str) -> Optional[str]:
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": _PROMPT.format(name=raw_name.strip())}],
            temperature=self._temperature,
            max_tokens=20,
        )
        content = response.choices[0].message.content if response.choices else None
        suggestion = clean_suggestion(content)
        logger.info("AI suggestion for '%s': %r", raw_name, suggestion)
        return suggestion

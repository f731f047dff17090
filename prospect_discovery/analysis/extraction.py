"""Structured JSON extraction from LLM responses.

Every caller in the engine treats the text-generation service as optional:
`llm_json` returns None instead of raising so the heuristic path can take over.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re

from prospect_discovery.analysis.llm_client import llm_complete
from prospect_discovery.config import Config

logger = logging.getLogger(__name__)


def _extract_json(text: str) -> str:
    """Extract the first valid JSON object from an LLM response."""
    cleaned = text.strip()
    cleaned = re.sub(r"^```json\s*", "", cleaned)
    cleaned = re.sub(r"^```\s*", "", cleaned)
    cleaned = re.sub(r"\s*```\s*$", "", cleaned)
    cleaned = cleaned.strip()

    try:
        json.loads(cleaned)
        return cleaned
    except json.JSONDecodeError:
        pass

    start = cleaned.find("{")
    if start == -1:
        return cleaned

    depth = 0
    in_string = False
    escape = False
    for i in range(start, len(cleaned)):
        c = cleaned[i]
        if escape:
            escape = False
            continue
        if c == "\\":
            escape = True
            continue
        if c == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                candidate = cleaned[start:i + 1]
                try:
                    json.loads(candidate)
                    return candidate
                except json.JSONDecodeError:
                    break

    return cleaned


def parse_json_object(text: str | None) -> dict | None:
    """Parse an LLM response into a dict, or None when it holds no JSON object."""
    if not text or not text.strip():
        return None
    try:
        data = json.loads(_extract_json(text))
    except json.JSONDecodeError as e:
        logger.warning("LLM response is not valid JSON: %s", e)
        return None
    if not isinstance(data, dict):
        logger.warning("LLM response JSON is a %s, expected an object", type(data).__name__)
        return None
    return data


async def llm_json(
    prompt: str,
    config: Config,
    timeout: float | None = None,
    max_tokens: int | None = None,
) -> dict | None:
    """Ask the configured LLM for a JSON object. Never raises.

    Returns None when no provider is configured, the call times out or fails,
    or the response cannot be parsed.
    """
    if not config.llm_configured:
        return None

    try:
        if timeout is not None:
            text = await asyncio.wait_for(
                llm_complete(prompt, config, max_tokens=max_tokens, json_mode=True),
                timeout=timeout,
            )
        else:
            text = await llm_complete(prompt, config, max_tokens=max_tokens, json_mode=True)
    except asyncio.TimeoutError:
        logger.warning("LLM call exceeded %.1fs budget, using fallback", timeout)
        return None
    except Exception as e:
        logger.warning("LLM call failed (%s), using fallback", e)
        return None

    return parse_json_object(text)

"""LLM access for planning and scoring: Anthropic when configured, OpenAI as fallback.

The engine never depends on an answer: callers go through `llm_json`, which
turns every failure raised here into a fallback to keyword heuristics.
"""

from __future__ import annotations

import asyncio
import logging

from prospect_discovery.config import Config

logger = logging.getLogger(__name__)

# Upper bound for one provider call; callers usually pass a tighter budget
_LLM_TIMEOUT = 60

JSON_SYSTEM_PROMPT = (
    "You are a B2B sales research assistant. Reply with a single JSON object "
    "and nothing else: no prose, no markdown fences."
)

# Sticky after a billing failure: Anthropic is skipped for the rest of the process
_active_provider: str | None = None
_anthropic_failed: bool = False
_clients: dict[tuple[str, str], object] = {}


class LLMUnavailableError(RuntimeError):
    """No configured provider could answer the prompt."""


class _AnthropicBillingError(Exception):
    """Anthropic rejected the call for credit/billing reasons."""


async def llm_complete(
    prompt: str,
    config: Config,
    max_tokens: int | None = None,
    json_mode: bool = False,
    timeout: float = _LLM_TIMEOUT,
) -> str:
    """Send one prompt and return the raw response text.

    Anthropic is tried first when it has a key and has not hit a billing
    error. Timeouts and other errors fall through to OpenAI for this call
    only; a billing error switches to OpenAI for all later calls.
    Raises LLMUnavailableError when no provider answers.
    """
    global _anthropic_failed

    max_tokens = max_tokens or config.llm_max_tokens

    if config.anthropic_api_key and not _anthropic_failed:
        try:
            return await asyncio.wait_for(
                _call_anthropic(prompt, config, max_tokens, json_mode), timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Anthropic call timed out after %.0fs", timeout)
            if not config.openai_api_key:
                raise LLMUnavailableError(f"Anthropic call timed out after {timeout:.0f}s")
        except _AnthropicBillingError:
            logger.warning("Anthropic billing error, using OpenAI for the rest of this run")
            _anthropic_failed = True
        except Exception as e:
            logger.error("Anthropic error: %s", e)
            if not config.openai_api_key:
                raise LLMUnavailableError(str(e)) from e

    if config.openai_api_key:
        return await asyncio.wait_for(
            _call_openai(prompt, config, max_tokens, json_mode), timeout=timeout,
        )

    raise LLMUnavailableError(
        "No LLM provider available. Set ANTHROPIC_API_KEY or OPENAI_API_KEY "
        "to enable LLM-assisted planning and scoring."
    )


def _client(provider: str, api_key: str):
    """One SDK client per (provider, key), reused across calls."""
    key = (provider, api_key)
    if key not in _clients:
        if provider == "anthropic":
            import anthropic

            _clients[key] = anthropic.AsyncAnthropic(api_key=api_key)
        else:
            from openai import AsyncOpenAI

            _clients[key] = AsyncOpenAI(api_key=api_key)
    return _clients[key]


def _set_active(provider: str, model: str) -> None:
    global _active_provider
    if _active_provider != provider:
        _active_provider = provider
        logger.info("Using %s (%s) for LLM calls", provider, model)


async def _call_anthropic(prompt: str, config: Config, max_tokens: int, json_mode: bool) -> str:
    import anthropic

    kwargs = {"system": JSON_SYSTEM_PROMPT} if json_mode else {}
    try:
        response = await _client("anthropic", config.anthropic_api_key).messages.create(
            model=config.anthropic_model,
            max_tokens=max_tokens,
            temperature=config.llm_temperature,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )
    except anthropic.APIStatusError as e:
        if e.status_code in (400, 401, 402):
            msg = str(e).lower()
            if "credit" in msg or "balance" in msg or "billing" in msg:
                raise _AnthropicBillingError(str(e)) from e
        raise
    _set_active("anthropic", config.anthropic_model)
    return "".join(block.text for block in response.content if getattr(block, "text", None))


async def _call_openai(prompt: str, config: Config, max_tokens: int, json_mode: bool) -> str:
    messages = [{"role": "user", "content": prompt}]
    kwargs = {}
    if json_mode:
        messages.insert(0, {"role": "system", "content": JSON_SYSTEM_PROMPT})
        kwargs["response_format"] = {"type": "json_object"}
    response = await _client("openai", config.openai_api_key).chat.completions.create(
        model=config.openai_model,
        max_tokens=max_tokens,
        temperature=config.llm_temperature,
        messages=messages,
        **kwargs,
    )
    _set_active("openai", config.openai_model)
    return response.choices[0].message.content or ""


def get_active_provider() -> str:
    """Provider that answered last, or "none" before the first successful call."""
    return _active_provider or "none"


def reset_provider_state() -> None:
    """Forget provider stickiness and cached clients (new run or tests)."""
    global _active_provider, _anthropic_failed
    _active_provider = None
    _anthropic_failed = False
    _clients.clear()

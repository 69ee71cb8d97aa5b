"""
LLM call utilities for making API calls to language models.
Supports Gemini, OpenAI and Anthropic; the provider is picked with the
LLM_PROVIDER environment variable unless passed explicitly.
"""

import asyncio
import logging
import os
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "gemini"
SUPPORTED_PROVIDERS = ("gemini", "openai", "anthropic")

Generator = Callable[[str], Awaitable[str]]


def get_provider(provider: Optional[str] = None) -> str:
    """Resolve the provider name from the argument or LLM_PROVIDER."""
    return (provider or os.getenv("LLM_PROVIDER", DEFAULT_PROVIDER)).strip().lower()


def call_llm(
    prompt: str,
    model: Optional[str] = None,
    temperature: float = 0.0,
    max_tokens: Optional[int] = None,
    provider: Optional[str] = None,
    **kwargs,
) -> str:
    """
    Call an LLM API with the given prompt.

    Args:
        prompt: The prompt text to send to the LLM
        model: Model name to use (defaults based on provider)
        temperature: Sampling temperature (0.0 for deterministic,
            higher for creative)
        max_tokens: Maximum tokens in response
            (None for default/provider max)
        provider: LLM provider to use ("gemini", "openai", "anthropic");
            defaults to the LLM_PROVIDER environment variable
        **kwargs: Additional provider-specific parameters

    Returns:
        The LLM response text

    Raises:
        ValueError: If provider is not supported or API key is missing
        Exception: If the API call fails
    """
    provider = get_provider(provider)
    if provider == "gemini":
        return _call_gemini(
            prompt=prompt,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )
    elif provider == "openai":
        return _call_openai(
            prompt=prompt,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )
    elif provider == "anthropic":
        return _call_anthropic(
            prompt=prompt,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )
    else:
        supported = ", ".join(f"'{name}'" for name in SUPPORTED_PROVIDERS)
        raise ValueError(f"Unsupported provider: {provider}. Supported: {supported}")


def _require_key(name: str) -> str:
    api_key = os.getenv(name)
    if not api_key:
        raise ValueError(
            f"{name} environment variable is not set. "
            "Set it or pick another provider with LLM_PROVIDER."
        )
    return api_key


def _call_gemini(
    prompt: str,
    model: Optional[str] = None,
    temperature: float = 0.0,
    max_tokens: Optional[int] = None,
    **kwargs,
) -> str:
    """
    Call Google Gemini API.

    Args:
        prompt: The prompt text
        model: Model name (defaults to GEMINI_MODEL or gemini-1.5-flash)
        temperature: Sampling temperature
        max_tokens: Maximum tokens in response
        **kwargs: Additional GenerationConfig parameters (top_p, top_k, ...)

    Returns:
        The response text from Gemini

    Raises:
        ValueError: If GEMINI_API_KEY is missing or the reply is empty
    """
    try:
        import google.generativeai as genai
    except ImportError:
        raise ImportError(
            "Google Generative AI library not installed. "
            "Install it with: pip install google-generativeai"
        )

    genai.configure(api_key=_require_key("GEMINI_API_KEY"))
    model = model or os.getenv("GEMINI_MODEL", "gemini-1.5-flash")

    generation_config = genai.types.GenerationConfig(
        temperature=temperature,
        top_p=kwargs.pop("top_p", 0.8),
        top_k=kwargs.pop("top_k", 40),
        max_output_tokens=max_tokens,
        **kwargs,
    )
    client = genai.GenerativeModel(model_name=model, generation_config=generation_config)

    logger.info(f"Calling Gemini API with model: {model}")
    try:
        response = client.generate_content(prompt)
        result = response.text
        if not result:
            raise ValueError("Gemini API returned empty content")
        usage = getattr(response, "usage_metadata", None)
        tokens_used = usage.total_token_count if usage else "unknown"
        logger.info(f"Gemini API call successful. Tokens used: {tokens_used}")
        return result
    except Exception as e:
        logger.error(f"Gemini API call failed: {str(e)}")
        raise


def _call_openai(
    prompt: str,
    model: Optional[str] = None,
    temperature: float = 0.0,
    max_tokens: Optional[int] = None,
    **kwargs,
) -> str:
    """Call the OpenAI chat completions API (OPENAI_MODEL, default gpt-4o-mini)."""
    from openai import OpenAI

    client = OpenAI(api_key=_require_key("OPENAI_API_KEY"))
    model = model or os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    max_tokens = max_tokens or int(os.getenv("OPENAI_MAX_TOKENS", "2000"))

    logger.info(f"Calling OpenAI API with model: {model}")
    try:
        response = client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )
        result = response.choices[0].message.content
        if not result:
            raise ValueError("OpenAI API returned empty content")
        tokens_used = response.usage.total_tokens if response.usage else "unknown"
        logger.info(f"OpenAI API call successful. Tokens used: {tokens_used}")
        return result
    except Exception as e:
        logger.error(f"OpenAI API call failed: {str(e)}")
        raise


def _call_anthropic(
    prompt: str,
    model: Optional[str] = None,
    temperature: float = 0.0,
    max_tokens: Optional[int] = None,
    **kwargs,
) -> str:
    """Call the Anthropic messages API (ANTHROPIC_MODEL)."""
    from anthropic import Anthropic

    client = Anthropic(api_key=_require_key("ANTHROPIC_API_KEY"))
    model = model or os.getenv("ANTHROPIC_MODEL", "claude-3-5-sonnet-20241022")
    max_tokens = max_tokens or int(os.getenv("ANTHROPIC_MAX_TOKENS", "4096"))

    logger.info(f"Calling Anthropic API with model: {model}")
    try:
        message = client.messages.create(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )
        if not message.content or not message.content[0].text:
            raise ValueError("Anthropic API returned empty content")
        usage = message.usage
        tokens_used = usage.input_tokens + usage.output_tokens if usage else "unknown"
        logger.info(f"Anthropic API call successful. Tokens used: {tokens_used}")
        return message.content[0].text
    except Exception as e:
        logger.error(f"Anthropic API call failed: {str(e)}")
        raise


async def call_llm_async(
    prompt: str,
    model: Optional[str] = None,
    temperature: float = 0.0,
    max_tokens: Optional[int] = None,
    provider: Optional[str] = None,
    **kwargs,
) -> str:
    """
    Async version of call_llm for use in FastAPI endpoints.

    The provider SDK call runs in the default thread pool so the event loop
    keeps serving other requests while the model responds.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None,
        lambda: call_llm(
            prompt=prompt,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            provider=provider,
            **kwargs,
        ),
    )


def get_generator(
    provider: Optional[str] = None, temperature: float = 0.0, **kwargs
) -> Generator:
    """
    Build an async `generate(prompt) -> text` callable bound to a provider.

    This is the only shape the expense service depends on; tests and
    alternative backends can pass any coroutine function with the same
    signature.
    """

    async def generate(prompt: str) -> str:
        return await call_llm_async(
            prompt, temperature=temperature, provider=provider, **kwargs
        )

    return generate

"""Language-model provider calls through pydantic-ai.

Each call builds its own model and agent from an explicit API key; keys are
never written into the process environment.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Final

from fastmcp.utilities.logging import get_logger
from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.models import Model
from pydantic_ai.settings import ModelSettings

from querygenie_mcp.errors import ProviderConfigurationError, ProviderError
from querygenie_mcp.generation.models import ProviderChoice
from querygenie_mcp.security.vault import mask_secret

_logger = get_logger(__name__)

AUTH_STATUS_CODES: Final[frozenset[int]] = frozenset({401, 403})
TIMEOUT_STATUS_CODES: Final[frozenset[int]] = frozenset({408, 504})


@dataclass(frozen=True, slots=True)
class ProviderSpec:
    """Static facts about one provider integration."""

    choice: ProviderChoice
    label: str
    default_model: str
    confidence: int


PROVIDERS: Final[dict[str, ProviderSpec]] = {
    "gemini": ProviderSpec("gemini", "Gemini", "gemini-2.5-flash", 80),
    "claude": ProviderSpec("claude", "Claude", "claude-sonnet-4-5", 90),
    "gpt4": ProviderSpec("gpt4", "GPT-4", "gpt-4o", 85),
}

ModelFactory = Callable[[ProviderSpec, str, str], Model]


def get_provider_spec(choice: str) -> ProviderSpec:
    """Return the provider details for ``choice``.

    Raises:
        ProviderConfigurationError: For an unknown provider choice
    """
    spec = PROVIDERS.get(choice)
    if spec is None:
        msg = f"Unsupported AI model: {choice}"
        raise ProviderConfigurationError(msg)
    return spec


def build_model(spec: ProviderSpec, model_name: str, api_key: str) -> Model:
    """Create the pydantic-ai model for a provider with an explicit key."""
    # Provider SDKs are imported lazily so only the chosen one has to load
    if spec.choice == "gemini":
        from pydantic_ai.models.google import GoogleModel  # noqa: PLC0415
        from pydantic_ai.providers.google import GoogleProvider  # noqa: PLC0415

        return GoogleModel(model_name, provider=GoogleProvider(api_key=api_key))
    if spec.choice == "claude":
        from pydantic_ai.models.anthropic import AnthropicModel  # noqa: PLC0415
        from pydantic_ai.providers.anthropic import AnthropicProvider  # noqa: PLC0415

        return AnthropicModel(model_name, provider=AnthropicProvider(api_key=api_key))
    from pydantic_ai.models.openai import OpenAIChatModel  # noqa: PLC0415
    from pydantic_ai.providers.openai import OpenAIProvider  # noqa: PLC0415

    return OpenAIChatModel(model_name, provider=OpenAIProvider(api_key=api_key))


@dataclass(slots=True)
class ProviderSettings:
    """Per-call generation settings."""

    temperature: float = 0.3
    timeout_sec: float = 60.0
    max_tokens: int = 2048


class ProviderClient:
    """Runs one completion per call; never retries."""

    def __init__(
        self,
        settings: ProviderSettings | None = None,
        *,
        model_factory: ModelFactory = build_model,
        model_names: dict[str, str] | None = None,
    ) -> None:
        self._settings = settings or ProviderSettings()
        self._model_factory = model_factory
        self._model_names = model_names or {}

    def complete(
        self, spec: ProviderSpec, api_key: str | None, system_prompt: str, user_prompt: str
    ) -> str:
        """Return the provider's raw text.

        Raises:
            ProviderConfigurationError: Missing key, or the provider rejected it
            ProviderError: Any other failure of the call itself
        """
        if not api_key:
            msg = f"{spec.label} API key not configured"
            raise ProviderConfigurationError(msg)

        model_name = self._model_names.get(spec.choice) or spec.default_model
        model = self._model_factory(spec, model_name, api_key)
        agent: Agent[None, str] = Agent(model, system_prompt=system_prompt, output_type=str)
        settings = ModelSettings(
            temperature=self._settings.temperature,
            max_tokens=self._settings.max_tokens,
            timeout=self._settings.timeout_sec,
        )
        _logger.info("Calling %s (%s) with key %s", spec.label, model_name, mask_secret(api_key))
        try:
            result = agent.run_sync(user_prompt, model_settings=settings)
        except ModelHTTPError as exc:
            if exc.status_code in AUTH_STATUS_CODES:
                msg = f"{spec.label} rejected the API key (HTTP {exc.status_code})"
                raise ProviderConfigurationError(msg) from exc
            msg = f"{spec.label} generation failed: HTTP {exc.status_code}"
            raise ProviderError(msg, timed_out=exc.status_code in TIMEOUT_STATUS_CODES) from exc
        except Exception as exc:  # noqa: BLE001 - SDKs raise their own types
            if is_timeout(exc):
                msg = f"{spec.label} timed out after {self._settings.timeout_sec:g}s"
                raise ProviderError(msg, timed_out=True) from exc
            msg = f"{spec.label} generation failed: {exc}"
            raise ProviderError(msg) from exc
        return result.output


def is_timeout(exc: BaseException) -> bool:
    """True when ``exc`` or anything in its cause chain is a timeout.

    Provider SDKs wrap their HTTP client's timeout in their own types
    (``APITimeoutError``, ``ReadTimeout`` ...), so names are matched as well as
    ``TimeoutError``.
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, TimeoutError) or "Timeout" in type(current).__name__:
            return True
        current = current.__cause__ or current.__context__
    return False

"""Maps provider names from the configuration to concrete provider instances."""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

from commerce_agent.llm.base import BaseLLMProvider

if TYPE_CHECKING:
    from commerce_agent.config import LLMConfig, LLMProviderConfig

logger = logging.getLogger(__name__)

# Provider name -> implementation class. Imports are deferred so that only
# the SDK of the provider actually in use gets loaded.
_PROVIDER_FACTORIES: dict[str, str] = {
    "openai": "commerce_agent.llm.openai.OpenAIProvider",
    "xai": "commerce_agent.llm.openai.OpenAIProvider",
    "anthropic": "commerce_agent.llm.anthropic.AnthropicProvider",
}

_API_KEY_ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "xai": "XAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


def _import_provider_class(dotted_path: str) -> type[BaseLLMProvider]:
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    if not (isinstance(cls, type) and issubclass(cls, BaseLLMProvider)):
        raise TypeError(
            f"Expected a BaseLLMProvider subclass at '{dotted_path}', got {cls!r}"
        )
    return cls


class LLMRouter:
    """Builds (and caches) the provider named in the ``llm`` config section."""

    def __init__(self, llm_config: LLMConfig):
        self._config = llm_config
        self._providers: dict[str, BaseLLMProvider] = {}

    def _get_provider_config(self, provider_name: str) -> LLMProviderConfig:
        config_block = getattr(self._config, provider_name, None)
        if config_block is None:
            available = [
                name for name in _PROVIDER_FACTORIES if getattr(self._config, name, None) is not None
            ]
            raise ValueError(
                f"Provider '{provider_name}' is not configured. "
                f"Available configured providers: {available or 'none'}. "
                f"Add a '{provider_name}' section to your LLM configuration."
            )
        return config_block

    def get_provider(self, provider_name: str | None = None) -> BaseLLMProvider:
        """Get or create a provider instance.

        Parameters
        ----------
        provider_name:
            ``"openai"``, ``"xai"`` or ``"anthropic"``. Falls back to
            ``default_provider`` from the configuration when ``None``.

        Raises
        ------
        ValueError
            If the provider is unknown, not configured, or missing its API
            key or model.
        """
        name = provider_name or self._config.default_provider
        if name in self._providers:
            return self._providers[name]

        if name not in _PROVIDER_FACTORIES:
            raise ValueError(
                f"Unknown provider '{name}'. "
                f"Supported providers: {sorted(_PROVIDER_FACTORIES)}"
            )

        provider_config = self._get_provider_config(name)
        if not provider_config.api_key:
            raise ValueError(
                f"API key for provider '{name}' is empty. Set it in the config file "
                f"or via the {_API_KEY_ENV_VARS[name]} environment variable."
            )
        if not provider_config.model:
            raise ValueError(f"No model specified for provider '{name}'.")

        provider_cls = _import_provider_class(_PROVIDER_FACTORIES[name])
        provider = provider_cls(
            api_key=provider_config.api_key,
            model=provider_config.model,
            base_url=provider_config.base_url,
            max_tokens=provider_config.max_tokens,
        )

        self._providers[name] = provider
        logger.info(
            "Created %s provider (model=%s, base_url=%s)",
            name,
            provider_config.model,
            provider_config.base_url or "default",
        )
        return provider

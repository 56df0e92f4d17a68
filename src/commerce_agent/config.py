"""Configuration system for the commerce agent.

Loads settings from ``commerce-agent.yaml``, supports environment variable
expansion, and falls back to an environment-only configuration when no file
exists so that a ``.env`` file is enough to start chatting.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from commerce_agent.commerce.models import SettlementCurrency


DEFAULT_CONFIG_FILE = "commerce-agent.yaml"


# ---------------------------------------------------------------------------
# Environment-variable expansion helpers
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    If the variable is not set the placeholder is left as-is; see
    :func:`_prune_unresolved`.
    """

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, match.group(0))

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_env_recursive(obj: object) -> object:
    """Walk an arbitrary nested structure and expand env vars in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item) for item in obj]
    return obj


def _prune_unresolved(obj: object) -> object:
    """Drop mapping entries whose value is still a bare ``${VAR}`` placeholder.

    The model defaults then apply, so an unset ``NETWORK_ID`` means the
    default network rather than a network literally named ``${NETWORK_ID}``.
    """
    if isinstance(obj, dict):
        return {
            k: _prune_unresolved(v)
            for k, v in obj.items()
            if not (isinstance(v, str) and _ENV_VAR_RE.fullmatch(v.strip()))
        }
    if isinstance(obj, list):
        return [_prune_unresolved(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# Pydantic v2 models
# ---------------------------------------------------------------------------


class LLMProviderConfig(BaseModel):
    """Configuration for a single LLM provider."""

    api_key: str = ""
    model: str = ""
    base_url: Optional[str] = None  # For OpenAI-compatible endpoints
    max_tokens: int = 4096


class LLMConfig(BaseModel):
    """LLM section: which provider drives the agent, and each provider's settings."""

    default_provider: str = "openai"
    openai: Optional[LLMProviderConfig] = None
    xai: Optional[LLMProviderConfig] = None
    anthropic: Optional[LLMProviderConfig] = None


class CommerceConfig(BaseModel):
    """Commerce gateway client settings ``{api_key, base_url, rpc_url}``."""

    api_key: str = ""
    base_url: str = "https://api.commerce.coinbase.com"
    api_version: str = "2018-03-22"
    rpc_url: Optional[str] = None  # Defaults to the settlement chain's public RPC
    timeout_seconds: float = 30.0


class WalletConfig(BaseModel):
    """Agent wallet settings."""

    network_id: str = "base-sepolia"
    data_file: str = "wallet_data.txt"
    password: str = ""


class PaymentConfig(BaseModel):
    """On-chain settlement parameters used when paying charges."""

    settlement_chain_id: int = 8453
    currency: SettlementCurrency = Field(default_factory=SettlementCurrency)


class OnrampConfig(BaseModel):
    """Funding (onramp) link settings."""

    base_url: str = "https://pay.coinbase.com/buy/select-asset"
    app_id: str = ""


class RateLimitConfig(BaseModel):
    """Limits for tools that create merchant objects."""

    charges_per_day: int = 50
    checkouts_per_day: int = 20


class StorageConfig(BaseModel):
    """Payment ledger location."""

    db_path: str = "commerce_agent.db"


DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful agent that can take and make payments onchain. "
    "You can create Coinbase Commerce charges and checkouts, hydrate a charge for a "
    "specific chain, pay charges from your own wallet, manage webhooks and look up "
    "your wallet details. If you ever need funds and you are on a test network such "
    "as `base-sepolia`, ask the user to use a faucet. On a mainnet network, generate "
    "a funding link with the pay link tool and give it to the user instead of asking "
    "for funds. If someone asks for something your tools cannot do, say so plainly. "
    "Be concise and helpful, and do not restate your tools' descriptions unless asked."
)

DEFAULT_AUTONOMOUS_PROMPT = (
    "Be creative and do something interesting on the blockchain. "
    "Choose an action or set of actions and execute it that highlights your abilities."
)


class AgentSettings(BaseModel):
    """Run-loop and reasoning settings."""

    thread_id: str = "commerce-agent"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    autonomous_prompt: str = DEFAULT_AUTONOMOUS_PROMPT
    interval_seconds: float = 10.0
    max_iterations: int = 15
    handle_tool_errors: bool = True
    isolate_failures: bool = False  # True keeps the loop alive after a failed turn


class AppConfig(BaseModel):
    """Root configuration object."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    commerce: CommerceConfig = Field(default_factory=CommerceConfig)
    wallet: WalletConfig = Field(default_factory=WalletConfig)
    payment: PaymentConfig = Field(default_factory=PaymentConfig)
    onramp: OnrampConfig = Field(default_factory=OnrampConfig)
    rate_limits: RateLimitConfig = Field(default_factory=RateLimitConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    agent: AgentSettings = Field(default_factory=AgentSettings)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

CONFIG_TEMPLATE = """\
llm:
  default_provider: ${LLM_PROVIDER}
  openai:
    api_key: ${OPENAI_API_KEY}
    model: gpt-4o
  xai:
    api_key: ${XAI_API_KEY}
    model: grok-2-latest
    base_url: https://api.x.ai/v1
  anthropic:
    api_key: ${ANTHROPIC_API_KEY}
    model: claude-sonnet-4-5-20250929
commerce:
  api_key: ${COINBASE_COMMERCE_KEY}
  rpc_url: ${RPC_URL}
wallet:
  network_id: ${NETWORK_ID}
  data_file: wallet_data.txt
  password: ${WALLET_PASSWORD}
onramp:
  app_id: ${ONRAMP_APP_ID}
"""


def _validate(raw_data: object) -> AppConfig:
    expanded = _prune_unresolved(_expand_env_recursive(raw_data or {}))
    return AppConfig.model_validate(expanded)


def load_config(path: Path) -> AppConfig:
    """Load and validate a configuration from a YAML file.

    Environment variable placeholders (``${VAR}``) are expanded before
    validation; placeholders for unset variables fall back to defaults.
    """
    raw_text = path.read_text(encoding="utf-8")
    return _validate(yaml.safe_load(raw_text))


def config_from_env() -> AppConfig:
    """Build a configuration purely from environment variables."""
    return _validate(yaml.safe_load(CONFIG_TEMPLATE))


def resolve_config(path: Path | None = None) -> AppConfig:
    """Load *path* (or ``./commerce-agent.yaml``) if it exists, else use the environment."""
    if path is None:
        path = Path.cwd() / DEFAULT_CONFIG_FILE
    if path.exists():
        return load_config(path)
    return config_from_env()


def write_config_template(path: Path) -> None:
    """Write the default configuration template, refusing to overwrite."""
    if path.exists():
        raise FileExistsError(f"Config already exists at {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(CONFIG_TEMPLATE, encoding="utf-8")

"""Pydantic models for command configuration and config file loading."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, field_validator

from geomweb import constants
from geomweb.auth.emails import parse_admin_emails
from geomweb.core.utils import console

# --- Config File Loading ---

CONFIG_PATH = Path.home() / ".config" / "geomweb" / "config.toml"
CONFIG_PATH_2 = Path("geomweb-config.toml")


def _replace_dashed_keys_recursive(d: dict[str, Any]) -> dict[str, Any]:
    """Recursively replace dashed keys with underscores in a dictionary."""
    new_dict = {}
    for k, v in d.items():
        new_key = k.replace("-", "_")
        if isinstance(v, dict):
            new_dict[new_key] = _replace_dashed_keys_recursive(v)
        else:
            new_dict[new_key] = v
    return new_dict


def load_config(config_path_str: str | None = None) -> dict[str, Any]:
    """Load the TOML configuration file, with dashed keys turned into underscores."""
    if config_path_str:
        config_path = Path(config_path_str).expanduser()
    elif CONFIG_PATH.exists():
        config_path = CONFIG_PATH
    elif CONFIG_PATH_2.exists():
        config_path = CONFIG_PATH_2
    else:
        return {}

    if config_path.exists():
        try:
            with config_path.open("rb") as f:
                return _replace_dashed_keys_recursive(tomllib.load(f))
        except tomllib.TOMLDecodeError as e:
            console.print(
                f"[bold red]Error parsing config file {config_path}: {e}[/bold red]",
            )
            return {}

    # Report error only if an explicit path was given
    console.print(f"[bold red]Config file not found at {config_path_str}[/bold red]")
    return {}


# --- Pydantic Models for Configuration ---


class SupabaseConfig(BaseModel):
    """Connection to the hosted database and its functions."""

    url: str
    api_key: str
    access_token: str | None = None

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def chat_endpoint_url(self) -> str:
        """URL of the deployed chat function."""
        return f"{self.url}{constants.CHAT_ENDPOINT_PATH}"


class ChatClientConfig(BaseModel):
    """Where the terminal chat sends conversations."""

    endpoint_url: str
    api_key: str | None = None
    request_timeout: float | None = None


class GatewayConfig(BaseModel):
    """Upstream completion service used by the chat gateway."""

    url: str = constants.DEFAULT_GATEWAY_URL
    api_key: str | None = None
    model: str = constants.DEFAULT_GATEWAY_MODEL

    @field_validator("api_key", mode="before")
    @classmethod
    def _blank_key_to_none(cls, v: str | None) -> str | None:
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator("model", mode="before")
    @classmethod
    def _blank_model_to_default(cls, v: str | None) -> str:
        if isinstance(v, str) and v.strip():
            return v.strip()
        return constants.DEFAULT_GATEWAY_MODEL


class AdminsConfig(BaseModel):
    """Accounts that are always treated as administrators."""

    emails: tuple[str, ...] = ()
    cache_ttl: float = constants.CACHE_TTL_SECONDS

    @field_validator("emails", mode="before")
    @classmethod
    def _parse_emails(cls, v: Any) -> list[str]:
        return parse_admin_emails(v)

"""Redeployer configuration models."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

# Environment variable -> (section, field). Section None means top level.
_ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "REDEPLOY_KUBECONFIG": (None, "kubeconfig"),
    "REDEPLOY_NAMESPACE": (None, "namespace"),
    "REDEPLOY_NAME_PATTERN": ("match", "name_pattern"),
    "REDEPLOY_FOLLOW_REPLICASETS": ("match", "follow_replicasets"),
    "REDEPLOY_WORKERS": ("restart", "workers"),
    "REDEPLOY_CONFLICT_RETRIES": ("restart", "conflict_retries"),
    "REDEPLOY_TIMEOUT": ("defaults", "timeout"),
    "REDEPLOY_RETRY_ATTEMPTS": ("defaults", "retry_attempts"),
    "REDEPLOY_VERBOSE": ("logging", "verbose"),
    "REDEPLOY_DEBUG": ("logging", "debug"),
    "REDEPLOY_LOG_JSON": ("logging", "json_output"),
    "REDEPLOY_LOG_FILE": ("logging", "file"),
}


class MatchConfig(BaseModel):
    """Pod selection settings."""

    model_config = ConfigDict(extra="forbid")

    name_pattern: str = "database"
    follow_replicasets: bool = False

    @field_validator("name_pattern")
    @classmethod
    def validate_name_pattern(cls, v: str) -> str:
        """Reject an empty pattern, which would match every pod."""
        if not v:
            raise ValueError("name_pattern must not be empty")
        return v


class RestartConfig(BaseModel):
    """Restart trigger settings."""

    model_config = ConfigDict(extra="forbid")

    workers: int = 1
    conflict_retries: int = 0

    @field_validator("workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Validate workers is positive."""
        if v <= 0:
            raise ValueError("workers must be positive")
        return v

    @field_validator("conflict_retries")
    @classmethod
    def validate_conflict_retries(cls, v: int) -> int:
        """Validate conflict_retries is non-negative."""
        if v < 0:
            raise ValueError("conflict_retries must be non-negative")
        return v


class KubernetesDefaultsConfig(BaseModel):
    """Default settings for Kubernetes API calls."""

    model_config = ConfigDict(extra="forbid")

    timeout: int = 30
    retry_attempts: int = 3

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        """Validate retry_attempts allows at least one attempt."""
        if v < 1:
            raise ValueError("retry_attempts must be at least 1")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(extra="forbid")

    verbose: bool = False
    debug: bool = False
    json_output: bool = False
    file: bool = True


class RedeployConfig(BaseModel):
    """Complete redeployer configuration.

    ``kubeconfig`` and ``namespace`` mirror the two command-line flags; an
    empty string means ambient cluster access and all namespaces respectively.
    """

    model_config = ConfigDict(extra="forbid")

    kubeconfig: str = ""
    namespace: str = ""
    match: MatchConfig = MatchConfig()
    restart: RestartConfig = RestartConfig()
    defaults: KubernetesDefaultsConfig = KubernetesDefaultsConfig()
    logging: LoggingConfig = LoggingConfig()

    @field_validator("kubeconfig")
    @classmethod
    def validate_kubeconfig(cls, v: str) -> str:
        """Expand ~ in kubeconfig path."""
        return str(Path(v).expanduser()) if v else v

    @classmethod
    def from_env(
        cls,
        base_config: dict[str, Any] | None = None,
        *,
        kubeconfig: str = "",
        namespace: str = "",
    ) -> RedeployConfig:
        """Create configuration with environment variable overrides.

        Precedence, highest first: explicit ``kubeconfig``/``namespace``
        arguments (the CLI flags), environment variables, ``base_config``.

        Supported environment variables:
            REDEPLOY_KUBECONFIG: Path to a kubeconfig file
            REDEPLOY_NAMESPACE: Namespace scope (empty for all namespaces)
            REDEPLOY_NAME_PATTERN: Pod name fragment to match
            REDEPLOY_FOLLOW_REPLICASETS: Resolve ReplicaSet owners to Deployments
            REDEPLOY_WORKERS: Number of parallel restart workers
            REDEPLOY_CONFLICT_RETRIES: Retries on write conflict (0 = unconditional write)
            REDEPLOY_TIMEOUT: API request timeout in seconds
            REDEPLOY_RETRY_ATTEMPTS: Attempts for transient connection errors
            REDEPLOY_VERBOSE / REDEPLOY_DEBUG: Console log level
            REDEPLOY_LOG_JSON: JSON console logs
            REDEPLOY_LOG_FILE: Write the rotating log file
        """
        config_dict: dict[str, Any] = {
            key: dict(value) if isinstance(value, dict) else value
            for key, value in (base_config or {}).items()
        }

        for env_var, (section, field) in _ENV_OVERRIDES.items():
            if (value := os.environ.get(env_var)) is None:
                continue
            target = config_dict.setdefault(section, {}) if section else config_dict
            target[field] = value

        if kubeconfig:
            config_dict["kubeconfig"] = kubeconfig
        if namespace:
            config_dict["namespace"] = namespace

        return cls.model_validate(config_dict)

    def get_scope(self) -> str | None:
        """Get the namespace scope, or None for all namespaces."""
        return self.namespace or None

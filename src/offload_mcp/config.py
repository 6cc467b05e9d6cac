"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "offload_mcp.toml"

CONTEXT_LIMIT_CAP = 1_048_576
MAX_FILE_BYTES_CAP = 4 * 1024 * 1024

DEFAULT_CONTEXT_LIMIT = 4096
DEFAULT_SAFETY_MARGIN = 0.8
DEFAULT_ESTIMATION_FACTOR = 1.2
DEFAULT_MAX_FILE_BYTES = 1024 * 1024
DEFAULT_INCLUDE_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".php", ".py")
DEFAULT_EXCLUDE_GLOBS = (
    "**/.git/**",
    "**/node_modules/**",
    "**/vendor/**",
    "**/dist/**",
    "**/build/**",
    "**/__pycache__/**",
    "**/.venv/**",
)


@dataclass(slots=True, frozen=True)
class ContextConfig:
    """Model context window settings used for chunk budgeting."""

    context_limit: int = DEFAULT_CONTEXT_LIMIT
    safety_margin: float = DEFAULT_SAFETY_MARGIN
    estimation_factor: float = DEFAULT_ESTIMATION_FACTOR


@dataclass(slots=True, frozen=True)
class AnalysisConfig:
    """Source discovery and per-file analysis limits."""

    include_extensions: tuple[str, ...] = DEFAULT_INCLUDE_EXTENSIONS
    exclude_globs: tuple[str, ...] = DEFAULT_EXCLUDE_GLOBS
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES


@dataclass(slots=True, frozen=True)
class ServerConfig:
    """Fully merged server configuration."""

    workspace_root: Path
    data_dir: Path
    context: ContextConfig
    analysis: AnalysisConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for tool responses."""
        return {
            "workspace_root": str(self.workspace_root),
            "data_dir": str(self.data_dir),
            "context": {
                "context_limit": self.context.context_limit,
                "safety_margin": self.context.safety_margin,
                "estimation_factor": self.context.estimation_factor,
            },
            "analysis": {
                "include_extensions": list(self.analysis.include_extensions),
                "exclude_globs": list(self.analysis.exclude_globs),
                "max_file_bytes": self.analysis.max_file_bytes,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    context_limit: int | None = None
    safety_margin: float | None = None
    max_file_bytes: int | None = None


def default_config(workspace_root: Path) -> ServerConfig:
    """Build default config for a given workspace root."""
    resolved_root = workspace_root.resolve()
    return ServerConfig(
        workspace_root=resolved_root,
        data_dir=resolved_root / ".offload_mcp",
        context=ContextConfig(),
        analysis=AnalysisConfig(),
    )


def load_workspace_config_file(workspace_root: Path) -> dict[str, object]:
    """Load optional offload_mcp.toml from the workspace root."""
    config_path = workspace_root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def merge_config(
    base: ServerConfig, workspace_payload: dict[str, object], overrides: CliOverrides
) -> ServerConfig:
    """Merge defaults, workspace config, then CLI/startup overrides."""
    context_payload = _get_table(workspace_payload, "context")
    analysis_payload = _get_table(workspace_payload, "analysis")

    context = ContextConfig(
        context_limit=_optional_positive_int_with_cap(
            context_payload.get("context_limit"),
            "context.context_limit",
            base.context.context_limit,
            CONTEXT_LIMIT_CAP,
        ),
        safety_margin=_optional_fraction(
            context_payload.get("safety_margin"),
            "context.safety_margin",
            base.context.safety_margin,
        ),
        estimation_factor=_optional_factor(
            context_payload.get("estimation_factor"),
            "context.estimation_factor",
            base.context.estimation_factor,
        ),
    )

    include_extensions = base.analysis.include_extensions
    if "include_extensions" in analysis_payload:
        include_extensions = tuple(
            extension.lower()
            for extension in _tuple_of_strings(
                analysis_payload["include_extensions"], "analysis", "include_extensions"
            )
        )
    exclude_globs = base.analysis.exclude_globs
    if "exclude_globs" in analysis_payload:
        exclude_globs = _tuple_of_strings(
            analysis_payload["exclude_globs"], "analysis", "exclude_globs"
        )
    analysis = AnalysisConfig(
        include_extensions=include_extensions,
        exclude_globs=exclude_globs,
        max_file_bytes=_optional_positive_int_with_cap(
            analysis_payload.get("max_file_bytes"),
            "analysis.max_file_bytes",
            base.analysis.max_file_bytes,
            MAX_FILE_BYTES_CAP,
        ),
    )

    merged = ServerConfig(
        workspace_root=base.workspace_root,
        data_dir=base.data_dir,
        context=context,
        analysis=analysis,
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: ServerConfig, overrides: CliOverrides) -> ServerConfig:
    """Apply startup overrides at highest precedence."""
    context = ContextConfig(
        context_limit=_optional_positive_int_with_cap(
            overrides.context_limit,
            "overrides.context_limit",
            config.context.context_limit,
            CONTEXT_LIMIT_CAP,
        ),
        safety_margin=_optional_fraction(
            overrides.safety_margin,
            "overrides.safety_margin",
            config.context.safety_margin,
        ),
        estimation_factor=config.context.estimation_factor,
    )
    analysis = AnalysisConfig(
        include_extensions=config.analysis.include_extensions,
        exclude_globs=config.analysis.exclude_globs,
        max_file_bytes=_optional_positive_int_with_cap(
            overrides.max_file_bytes,
            "overrides.max_file_bytes",
            config.analysis.max_file_bytes,
            MAX_FILE_BYTES_CAP,
        ),
    )
    data_dir = overrides.data_dir or config.data_dir
    return ServerConfig(
        workspace_root=config.workspace_root,
        data_dir=data_dir.resolve(),
        context=context,
        analysis=analysis,
    )


def load_effective_config(
    workspace_root: Path, overrides: CliOverrides | None = None
) -> ServerConfig:
    """Load effective config using merge order defaults -> workspace config -> overrides."""
    resolved_root = workspace_root.resolve()
    base = default_config(resolved_root)
    payload = load_workspace_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value


def _optional_fraction(value: object, name: str, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Config field '{name}' must be a number.")
    if not 0 < value <= 1:
        raise ValueError(f"Config field '{name}' must be in (0, 1].")
    return float(value)


def _optional_factor(value: object, name: str, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Config field '{name}' must be a number.")
    if value < 1:
        raise ValueError(f"Config field '{name}' must be >= 1.")
    return float(value)

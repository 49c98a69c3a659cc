"""Settings loading with deterministic precedence.

The cascade is always:
1) CLI params
2) Environment variables
3) ``~/.config/ark/ark.yaml`` (or an explicit ``config_path``)
4) Model defaults

Environment variable format:
- Prefix: ``ARK_``
- Nested keys: ``__`` separator
- Example: ``ARK_LOGGING__LEVEL=DEBUG`` -> ``logging.level = "DEBUG"``
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar, Mapping

from .models import DEFAULT_CONFIG_PATH, ArkSettings


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    config_path: str | Path | None = None,
) -> ArkSettings:
    """Load Ark settings applying the standard precedence cascade."""
    resolved_path = (
        Path(config_path).expanduser() if config_path is not None else DEFAULT_CONFIG_PATH
    )

    class _FileBoundSettings(ArkSettings):
        _config_path: ClassVar[Path] = resolved_path

    return _FileBoundSettings(**_as_plain_dict(cli_params or {}))


def _as_plain_dict(value: Mapping[str, Any]) -> dict[str, Any]:
    """Copy a mapping into plain ``dict`` values recursively."""
    output: dict[str, Any] = {}
    for key, subvalue in value.items():
        if isinstance(subvalue, Mapping):
            output[str(key)] = _as_plain_dict(subvalue)
        else:
            output[str(key)] = subvalue
    return output

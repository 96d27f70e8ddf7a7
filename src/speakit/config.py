"""Speakit configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (SPEAKIT_SUMMARY_MODEL, SPEAKIT_USER)
  3. Per-directory speakit.yaml  (current working directory)
  4. Global ~/.speakit/config.yaml  (no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".speakit"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "speakit.yaml"

MIN_RATE: float = 0.5
MAX_RATE: float = 2.0

# Fields that suggest an API key: forbidden in global config.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"  # api_key, api-key, api_secret, apikey
    r"|_token$"                  # access_token, auth_token (suffix)
    r"|^token$"                  # exactly "token" (standalone)
    r"|_secret$"                 # client_secret (suffix)
    r"|^secret$"                 # exactly "secret" (standalone)
    r"|passw(?:ord|d)"           # password, passwd
    r"|credential",              # credential, credentials
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["playback", "voices", "storage", "extraction", "summary"]
)

_KNOWN_ENGINES: frozenset[str] = frozenset(["timed", "system"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class PlaybackCfg:
    """Playback controller behaviour (speakit.yaml: playback:).

    Attributes:
        rate: Speed multiplier, clamped to [0.5, 2.0].
        advance_on_error: Treat a failed unit as spoken and continue. When
            False the controller pauses on the failing unit instead.
        replay_finished: ``play()`` on a finished session restarts from the
            first unit instead of doing nothing.
        save_interval: Persist the bookmark every N advanced units while
            playing (pause, stop and finish always persist).
    """

    rate: float = 1.0
    advance_on_error: bool = True
    replay_finished: bool = False
    save_interval: int = 10


@dataclass
class VoicesCfg:
    """Speech engine and default voice heuristic (speakit.yaml: voices:).

    ``preferred`` is an ordered list of marker groups; the first voice whose
    name contains any marker of the earliest group wins.
    """

    engine: str = "system"
    words_per_minute: int = 180
    preferred: list[list[str]] = field(
        default_factory=lambda: [["Female", "Samantha"], ["Male", "Daniel"]]
    )


@dataclass
class StorageCfg:
    """Guest and account persistence (speakit.yaml: storage:)."""

    guest_path: str = str(_GLOBAL_CONFIG_DIR / "guest.json")
    db_path: str = str(_GLOBAL_CONFIG_DIR / "speakit.db")
    history_limit: int = 50
    preview_chars: int = 200


@dataclass
class ExtractionCfg:
    """Content extraction limits (speakit.yaml: extraction:)."""

    max_pdf_bytes: int = 10 * 1024 * 1024
    max_response_bytes: int = 5 * 1024 * 1024
    timeout: int = 30


@dataclass
class SummaryCfg:
    """LLM summarization (speakit.yaml: summary:)."""

    model: str = "openai/gpt-4o-mini"
    max_tokens: int = 500


@dataclass
class SpeakitConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    playback: PlaybackCfg = field(default_factory=PlaybackCfg)
    voices: VoicesCfg = field(default_factory=VoicesCfg)
    storage: StorageCfg = field(default_factory=StorageCfg)
    extraction: ExtractionCfg = field(default_factory=ExtractionCfg)
    summary: SummaryCfg = field(default_factory=SummaryCfg)
    user: str | None = None  # set from SPEAKIT_USER or --user


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def clamp_rate(rate: float) -> float:
    """Clamp a speed multiplier into the supported range."""
    return max(MIN_RATE, min(MAX_RATE, float(rate)))


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _parse_preferred(raw: Any, default: list[list[str]]) -> list[list[str]]:
    if raw is None:
        return default
    groups: list[list[str]] = []
    for group in raw:
        if isinstance(group, str):
            groups.append([group])
        else:
            groups.append([str(marker) for marker in group])
    return groups


def _cfg_from_dict(data: dict[str, Any]) -> SpeakitConfig:
    """Build a *SpeakitConfig* from a merged raw YAML dict."""
    cfg = SpeakitConfig()

    if "playback" in data:
        p = data["playback"]
        cfg.playback = PlaybackCfg(
            rate=clamp_rate(p.get("rate", cfg.playback.rate)),
            advance_on_error=bool(p.get("advance_on_error", cfg.playback.advance_on_error)),
            replay_finished=bool(p.get("replay_finished", cfg.playback.replay_finished)),
            save_interval=int(p.get("save_interval", cfg.playback.save_interval)),
        )
        if cfg.playback.save_interval < 1:
            raise ConfigError("playback.save_interval must be >= 1")

    if "voices" in data:
        v = data["voices"]
        cfg.voices = VoicesCfg(
            engine=str(v.get("engine", cfg.voices.engine)),
            words_per_minute=int(v.get("words_per_minute", cfg.voices.words_per_minute)),
            preferred=_parse_preferred(v.get("preferred"), cfg.voices.preferred),
        )
        if cfg.voices.engine not in _KNOWN_ENGINES:
            raise ConfigError(
                f"voices.engine must be one of {', '.join(sorted(_KNOWN_ENGINES))}, "
                f"got '{cfg.voices.engine}'"
            )

    if "storage" in data:
        s = data["storage"]
        cfg.storage = StorageCfg(
            guest_path=str(s.get("guest_path", cfg.storage.guest_path)),
            db_path=str(s.get("db_path", cfg.storage.db_path)),
            history_limit=int(s.get("history_limit", cfg.storage.history_limit)),
            preview_chars=int(s.get("preview_chars", cfg.storage.preview_chars)),
        )
        if cfg.storage.history_limit < 1:
            raise ConfigError("storage.history_limit must be >= 1")

    if "extraction" in data:
        e = data["extraction"]
        cfg.extraction = ExtractionCfg(
            max_pdf_bytes=int(e.get("max_pdf_bytes", cfg.extraction.max_pdf_bytes)),
            max_response_bytes=int(
                e.get("max_response_bytes", cfg.extraction.max_response_bytes)
            ),
            timeout=int(e.get("timeout", cfg.extraction.timeout)),
        )

    if "summary" in data:
        sm = data["summary"]
        cfg.summary = SummaryCfg(
            model=str(sm.get("model", cfg.summary.model)),
            max_tokens=int(sm.get("max_tokens", cfg.summary.max_tokens)),
        )

    return cfg


def _apply_env_overrides(cfg: SpeakitConfig) -> SpeakitConfig:
    """Apply SPEAKIT_* environment variable overrides."""
    if model := os.environ.get("SPEAKIT_SUMMARY_MODEL"):
        cfg.summary.model = model
    if user := os.environ.get("SPEAKIT_USER"):
        cfg.user = user
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> SpeakitConfig:
    """Load and return a merged *SpeakitConfig*.

    Applies layers in order: global → per-directory → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *speakit.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields or a
            value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)
    return _apply_env_overrides(cfg)

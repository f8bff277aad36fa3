from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .constants import (
    ANALYSIS_MAX_SAMPLES,
    ANALYSIS_MIN_SAMPLES,
    ANALYSIS_SAMPLE_STRIDE,
    DEFAULT_THRESHOLD_ALERT,
    DEFAULT_THRESHOLD_IMMEDIATE,
    DEFAULT_THRESHOLD_INTERVENTION,
    HISTORY_MAX_ENTRIES,
)
from .domain_models import Direction, SessionConfig, Thresholds, parse_start_position

PROJECT_DIR = Path(__file__).resolve().parents[1]
"""Root of the checkout; holds the default ``config.yaml``."""

LOGGER = logging.getLogger(__name__)

SUPPORTED_REPORT_LANGUAGES: tuple[str, ...] = ("en", "fr")

DEFAULT_CONFIG: dict[str, Any] = {
    "server": {"host": "0.0.0.0", "port": 8000},
    "storage": {
        "history_db_path": "data/history.db",
        "max_history_entries": HISTORY_MAX_ENTRIES,
    },
    "session": {
        "start_position": 0.0,
        "direction": "increasing",
        "track": "",
        "thresholds": {
            "alert": DEFAULT_THRESHOLD_ALERT,
            "intervention": DEFAULT_THRESHOLD_INTERVENTION,
            "immediate": DEFAULT_THRESHOLD_IMMEDIATE,
        },
        "operator": "",
        "line": "",
        "train": "",
        "engine_number": "",
        "train_position": "",
    },
    "analysis": {
        "enabled": True,
        "model": "gemini-2.5-flash",
        "api_key_env": "GEMINI_API_KEY",
        "timeout_s": 30.0,
        "min_samples": ANALYSIS_MIN_SAMPLES,
        "sample_stride": ANALYSIS_SAMPLE_STRIDE,
        "max_samples": ANALYSIS_MAX_SAMPLES,
    },
    "report": {"language": "en"},
}


def documented_default_config() -> dict[str, Any]:
    """Return runtime defaults in the shape documented by config.example.yaml."""
    return deepcopy(DEFAULT_CONFIG)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _resolve_config_path(path_text: str, config_path: Path) -> Path:
    path = Path(path_text)
    if path.is_absolute():
        return path
    return config_path.resolve().parent / path


@dataclass(slots=True)
class ServerConfig:
    host: str
    port: int

    def __post_init__(self) -> None:
        if not isinstance(self.port, int) or not (1 <= self.port <= 65535):
            raise ValueError(f"ServerConfig.port must be 1–65535, got {self.port!r}")


@dataclass(slots=True)
class StorageConfig:
    history_db_path: Path
    max_history_entries: int

    def __post_init__(self) -> None:
        if not isinstance(self.max_history_entries, int) or self.max_history_entries < 1:
            LOGGER.warning(
                "storage.max_history_entries=%s is below minimum 1, using %s",
                self.max_history_entries,
                HISTORY_MAX_ENTRIES,
            )
            object.__setattr__(self, "max_history_entries", HISTORY_MAX_ENTRIES)


@dataclass(slots=True)
class AnalysisConfig:
    enabled: bool
    model: str
    api_key_env: str
    timeout_s: float
    min_samples: int
    sample_stride: int
    max_samples: int

    def __post_init__(self) -> None:
        _POS_FIELDS: dict[str, int] = {
            "min_samples": 1,
            "sample_stride": 1,
            "max_samples": 1,
        }
        for field_name, minimum in _POS_FIELDS.items():
            val = getattr(self, field_name)
            if val < minimum:
                LOGGER.warning(
                    "analysis.%s=%s is below minimum %s, clamped to %s",
                    field_name,
                    val,
                    minimum,
                    minimum,
                )
                object.__setattr__(self, field_name, minimum)
        if not isinstance(self.timeout_s, (int, float)) or self.timeout_s <= 0:
            LOGGER.warning("analysis.timeout_s=%s is not positive, using 30s", self.timeout_s)
            object.__setattr__(self, "timeout_s", 30.0)


@dataclass(slots=True)
class ReportConfig:
    language: str

    def __post_init__(self) -> None:
        lang = str(self.language or "").strip().lower()
        if lang not in SUPPORTED_REPORT_LANGUAGES:
            LOGGER.warning("report.language=%r is not supported, using 'en'", self.language)
            lang = "en"
        object.__setattr__(self, "language", lang)


@dataclass(slots=True)
class AppConfig:
    server: ServerConfig
    storage: StorageConfig
    session: SessionConfig
    analysis: AnalysisConfig
    report: ReportConfig
    config_path: Path


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a YAML object at the top level.")
        return data


def _session_defaults(raw: dict[str, Any]) -> SessionConfig:
    thresholds_raw = raw.get("thresholds")
    thresholds = Thresholds.from_dict(thresholds_raw if isinstance(thresholds_raw, dict) else {})
    try:
        start_position = parse_start_position(raw.get("start_position", 0.0))
    except ValueError:
        LOGGER.warning(
            "session.start_position=%r is not a number, using 0", raw.get("start_position")
        )
        start_position = 0.0
    return SessionConfig(
        start_position=start_position,
        direction=Direction.parse(raw.get("direction")),
        track=str(raw.get("track") or ""),
        thresholds=thresholds,
        operator=str(raw.get("operator") or ""),
        line=str(raw.get("line") or ""),
        train=str(raw.get("train") or ""),
        engine_number=str(raw.get("engine_number") or ""),
        train_position=str(raw.get("train_position") or ""),
    )


def load_config(config_path: Path | None = None) -> AppConfig:
    path = config_path or (PROJECT_DIR / "config.yaml")
    path = path.resolve()
    override = _read_config_file(path)
    merged = _deep_merge(DEFAULT_CONFIG, override)

    server_port = int(merged["server"]["port"])
    if not 1 <= server_port <= 65535:
        raise ValueError(f"server.port must be 1-65535, got {server_port}")

    storage_cfg = merged["storage"]
    analysis_cfg = merged["analysis"]
    analysis_defaults = DEFAULT_CONFIG["analysis"]
    app_config = AppConfig(
        server=ServerConfig(
            host=str(merged["server"]["host"]),
            port=server_port,
        ),
        storage=StorageConfig(
            history_db_path=_resolve_config_path(str(storage_cfg["history_db_path"]), path),
            max_history_entries=int(
                storage_cfg.get("max_history_entries", HISTORY_MAX_ENTRIES)
            ),
        ),
        session=_session_defaults(merged["session"]),
        analysis=AnalysisConfig(
            enabled=bool(analysis_cfg.get("enabled", True)),
            model=str(analysis_cfg.get("model") or analysis_defaults["model"]),
            api_key_env=str(analysis_cfg.get("api_key_env") or analysis_defaults["api_key_env"]),
            timeout_s=float(analysis_cfg.get("timeout_s", analysis_defaults["timeout_s"])),
            min_samples=int(analysis_cfg.get("min_samples", ANALYSIS_MIN_SAMPLES)),
            sample_stride=int(analysis_cfg.get("sample_stride", ANALYSIS_SAMPLE_STRIDE)),
            max_samples=int(analysis_cfg.get("max_samples", ANALYSIS_MAX_SAMPLES)),
        ),
        report=ReportConfig(language=str(merged["report"].get("language", "en"))),
        config_path=path,
    )
    LOGGER.info(
        "Loaded config=%s history_db_path=%s",
        app_config.config_path,
        app_config.storage.history_db_path,
    )
    return app_config

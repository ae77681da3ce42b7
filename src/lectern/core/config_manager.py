"""
Configuration loading with YAML files and environment overrides.
"""

import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import yaml
from pydantic import ValidationError

from ..models.config_models import LecternConfig
from .error_classifier import ConfigurationError

logger = logging.getLogger(__name__)


def safe_int(value: Optional[str], default: int) -> int:
    """Parse an integer, keeping ``default`` for missing or unparsable input."""
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring unparsable integer value {value!r}, using {default}")
        return default


def safe_float(value: Optional[str], default: float) -> float:
    """Parse a float, keeping ``default`` for missing or unparsable input."""
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring unparsable float value {value!r}, using {default}")
        return default


# env var -> (section, field, parser); section None means top level
ENV_OVERRIDES: Dict[str, Tuple[Optional[str], str, Callable[..., Any]]] = {
    "RAG_CHUNK_SIZE": ("chunking", "chunk_size", safe_int),
    "RAG_CHUNK_OVERLAP": ("chunking", "chunk_overlap", safe_int),
    "RAG_EMBEDDING_DIM": ("retrieval", "embedding_dimension", safe_int),
    "RAG_MATCH_THRESHOLD": ("retrieval", "match_threshold", safe_float),
    "RAG_MATCH_COUNT": ("retrieval", "match_count", safe_int),
    "RAG_RRF_K": ("retrieval", "rrf_k", safe_int),
    "RAG_STRUCTURE_SUMMARY_LENGTH": ("extraction", "structure_page_summary_length", safe_int),
    "RAG_SINGLE_PASS_MAX_PAGES": ("extraction", "single_pass_max_pages", safe_int),
    "RAG_SINGLE_PASS_BATCH_PAGES": ("extraction", "single_pass_batch_pages", safe_int),
    "RAG_SINGLE_PASS_BATCH_OVERLAP": ("extraction", "single_pass_batch_overlap", safe_int),
    "RAG_SHORT_DOC_THRESHOLD": ("extraction", "short_document_threshold", safe_int),
    "RAG_QUALITY_THRESHOLD": ("quality", "quality_score_threshold", safe_int),
    "RAG_SEMANTIC_DEDUP_THRESHOLD": ("quality", "semantic_dedup_threshold", safe_float),
    "RAG_LOCAL_OUTLINE_THRESHOLD": ("outline", "local_outline_threshold", safe_int),
}

STRING_OVERRIDES: Dict[str, Tuple[Optional[str], str]] = {
    "GEMINI_API_KEY": ("oracle", "api_key"),
    "GEMINI_PARSE_MODEL": ("oracle", "parse_model"),
    "GEMINI_EMBEDDING_MODEL": ("oracle", "embedding_model"),
    "VOYAGE_API_KEY": ("oracle", "voyage_api_key"),
    "LECTERN_LOG_LEVEL": (None, "log_level"),
}


class ConfigManager:
    """Loads, validates and writes pipeline configuration."""

    def __init__(self) -> None:
        self.current_config: Optional[LecternConfig] = None
        self.config_path: Optional[Path] = None

    def load_config(
        self, config_path: Optional[Path] = None, from_env: bool = True
    ) -> LecternConfig:
        """
        Load configuration from an optional YAML file plus environment overrides.

        Args:
            config_path: YAML file to read; defaults apply when omitted
            from_env: Whether to apply ``RAG_*``/``GEMINI_*`` overrides

        Returns:
            Validated LecternConfig

        Raises:
            ConfigurationError: If the file is unreadable or values are invalid
        """
        config_data: Dict[str, Any] = {}

        if config_path is not None:
            config_data = self._load_yaml(Path(config_path))
            self.config_path = Path(config_path)

        if from_env:
            self._apply_environment_overrides(config_data)

        try:
            config = LecternConfig(**config_data)
        except ValidationError as e:
            logger.error(f"Failed to validate configuration: {e}")
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        self._check_consistency(config)
        self.current_config = config
        logger.debug(f"Configuration loaded (file={config_path}, env={from_env})")
        return config

    def create_template_config(self, config_path: Path) -> None:
        """Write a YAML file containing the default configuration."""
        config_path = Path(config_path)
        if config_path.exists():
            raise ConfigurationError(f"Configuration file already exists: {config_path}")

        config_dict = LecternConfig().model_dump()
        # credentials come from the environment
        config_dict["oracle"]["api_key"] = "${GEMINI_API_KEY}"
        config_dict["oracle"]["voyage_api_key"] = "${VOYAGE_API_KEY}"

        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write("# Lectern pipeline configuration\n")
                yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ConfigurationError(f"Configuration saving failed: {e}") from e

        logger.info(f"Template configuration written to {config_path}")

    def get_current_config(self) -> Optional[LecternConfig]:
        return self.current_config

    def _load_yaml(self, config_path: Path) -> Dict[str, Any]:
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, encoding="utf-8") as f:
                content = os.path.expandvars(f.read())
            data = yaml.safe_load(content)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Invalid configuration file {config_path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file must contain a YAML dictionary")

        # unresolved ${VAR} placeholders mean the variable is unset
        for section in data.values():
            if isinstance(section, dict):
                for key, value in list(section.items()):
                    if isinstance(value, str) and value.startswith("${"):
                        section[key] = None
        return data

    def _apply_environment_overrides(self, config_data: Dict[str, Any]) -> None:
        defaults = LecternConfig()

        for env_name, (section, field_name, parser) in ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is None:
                continue
            target = config_data.setdefault(section, {}) if section else config_data
            current = target.get(
                field_name, getattr(getattr(defaults, section), field_name)
            )
            target[field_name] = parser(raw, current)

        for env_name, (section, field_name) in STRING_OVERRIDES.items():
            raw = os.getenv(env_name)
            if not raw:
                continue
            target = config_data.setdefault(section, {}) if section else config_data
            target[field_name] = raw

    def _check_consistency(self, config: LecternConfig) -> None:
        if config.chunking.chunk_overlap >= config.chunking.chunk_size:
            raise ConfigurationError(
                f"chunk_overlap ({config.chunking.chunk_overlap}) must be smaller "
                f"than chunk_size ({config.chunking.chunk_size})"
            )
        extraction = config.extraction
        if extraction.single_pass_batch_overlap >= extraction.single_pass_batch_pages:
            raise ConfigurationError(
                f"single_pass_batch_overlap ({extraction.single_pass_batch_overlap}) must "
                f"be smaller than single_pass_batch_pages ({extraction.single_pass_batch_pages})"
            )

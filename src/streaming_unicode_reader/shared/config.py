"""Configuration classes for the streaming reader.

Configuration objects are plain dataclasses validated on construction. The
top-level ``ReaderConfig`` is frozen so one instance can be shared between
readers; use ``override`` to derive variants.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

# Big enough for the longest UTF-8 sequence and a UTF-16 surrogate pair.
MIN_RAW_BUFFER_SIZE = 4
DEFAULT_RAW_BUFFER_SIZE = 16384

# Every raw byte turns into at most this many output bytes (UTF-16 unit of
# 2 bytes -> 3 UTF-8 bytes), so a full raw buffer always fits.
OUTPUT_EXPANSION_FACTOR = 3

CONTENT_POLICIES = ("printable", "xml10")
LOGGING_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass
class BufferConfig:
    """Capacities of the raw and decoded buffers."""

    raw_buffer_size: int = DEFAULT_RAW_BUFFER_SIZE
    output_buffer_size: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate buffer configuration."""
        if self.raw_buffer_size < MIN_RAW_BUFFER_SIZE:
            raise ValueError(f"raw_buffer_size must be >= {MIN_RAW_BUFFER_SIZE}")
        if self.output_buffer_size is not None and self.output_buffer_size < 4:
            raise ValueError("output_buffer_size must be >= 4 or None")

    @property
    def effective_output_size(self) -> int:
        """Output capacity, defaulting to the worst-case expansion of the raw buffer."""
        if self.output_buffer_size is not None:
            return self.output_buffer_size
        return self.raw_buffer_size * OUTPUT_EXPANSION_FACTOR


@dataclass(frozen=True)
class ReaderConfig:
    """Complete configuration for one stream reader."""

    buffers: BufferConfig = field(default_factory=BufferConfig)
    content_policy: str = "printable"
    correlation_id: Optional[str] = None
    logging_level: str = "INFO"

    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete reader configuration."""
        try:
            self.buffers.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e), field_name="buffers") from e

        if self.content_policy not in CONTENT_POLICIES:
            raise ConfigValidationError(
                f"content_policy must be one of {list(CONTENT_POLICIES)}",
                field_name="content_policy",
                suggestions=list(CONTENT_POLICIES),
            )
        if self.logging_level not in LOGGING_LEVELS:
            raise ConfigValidationError(
                f"logging_level must be one of {list(LOGGING_LEVELS)}",
                field_name="logging_level",
            )

    def override(self, **kwargs: Any) -> "ReaderConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Fields to override; ``buffers__<field>`` reaches into the
                nested buffer configuration

        Returns:
            New ReaderConfig instance with overrides applied

        Example:
            >>> config = ReaderConfig().override(
            ...     buffers__raw_buffer_size=1024,
            ...     content_policy="xml10",
            ... )
        """
        buffer_overrides: Dict[str, Any] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component != "buffers":
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=component,
                    )
                buffer_overrides[field_name] = value
            else:
                top_level[key] = value

        if buffer_overrides:
            top_level["buffers"] = replace(self.buffers, **buffer_overrides)
        return replace(self, **top_level)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            if isinstance(obj, Enum):
                return obj.name
            if isinstance(obj, (list, tuple)):
                return [_dataclass_to_dict(item) for item in obj]
            return obj

        result = _dataclass_to_dict(self)
        if not isinstance(result, dict):
            raise ConfigValidationError("Configuration serialization failed")
        return result

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReaderConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so typos in configuration files surface early.
        """
        def _dict_to_dataclass(data_dict: Dict[str, Any], target_class: type) -> Any:
            if not isinstance(data_dict, dict):
                raise ConfigValidationError(
                    f"Expected a mapping for {target_class.__name__}"
                )
            known = target_class.__dataclass_fields__
            unknown = sorted(set(data_dict) - set(known))
            if unknown:
                raise ConfigValidationError(
                    f"Unknown configuration fields: {unknown}",
                    field_name=unknown[0],
                    suggestions=sorted(known),
                )

            field_values: Dict[str, Any] = {}
            for field_name, field_info in known.items():
                if field_name not in data_dict:
                    continue
                value = data_dict[field_name]
                if hasattr(field_info.type, "__dataclass_fields__"):
                    value = _dict_to_dataclass(value, field_info.type)
                field_values[field_name] = value
            try:
                return target_class(**field_values)
            except ValueError as e:
                raise ConfigValidationError(str(e)) from e

        result = _dict_to_dataclass(data, cls)
        if not isinstance(result, cls):
            raise ConfigValidationError(f"Failed to deserialize to {cls.__name__}")
        return result

    @classmethod
    def from_json(cls, json_str: str) -> "ReaderConfig":
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid configuration JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ReaderConfig":
        """Load configuration from a JSON file.

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        config_path = Path(path)
        try:
            text = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read configuration file {config_path}: {e}") from e
        return cls.from_json(text)

    # Preset factory methods
    @classmethod
    def balanced(cls) -> "ReaderConfig":
        """Default buffer sizes with the printable-character policy."""
        return cls(name="balanced")

    @classmethod
    def low_memory(cls) -> "ReaderConfig":
        """Small buffers for constrained environments; more refills per stream."""
        return cls(
            buffers=BufferConfig(raw_buffer_size=512),
            name="low_memory",
            description="Small buffers trading refill count for memory",
        )

    @classmethod
    def high_throughput(cls) -> "ReaderConfig":
        """Large buffers for fast local sources."""
        return cls(
            buffers=BufferConfig(raw_buffer_size=65536),
            name="high_throughput",
            description="Large buffers minimizing calls into the byte source",
        )

    @classmethod
    def xml(cls) -> "ReaderConfig":
        """XML 1.0 character policy instead of the printable subset."""
        return cls(
            content_policy="xml10",
            name="xml",
            description="Admits the XML 1.0 Char production",
        )


PRESETS = {
    "balanced": ReaderConfig.balanced,
    "low_memory": ReaderConfig.low_memory,
    "high_throughput": ReaderConfig.high_throughput,
    "xml": ReaderConfig.xml,
}

"""Generator configuration.

Configuration is read from ``apitest-gen.yaml`` (or ``.yml``) in the
project root, or from an explicit path. Every key is optional.

Example file:
    output_dir: tests/generated
    workers: 8
    order_gating: order
    duplicate_names: suffix
    exclude:
      - migrations
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from apitest_gen.core.model import DUPLICATE_POLICIES, GENERATED_SUFFIX
from apitest_gen.core.synthesis.context import ORDER_GATING_CHOICES
from apitest_gen.exceptions import ConfigException

CONFIG_FILE_NAMES = ["apitest-gen.yaml", "apitest-gen.yml"]

DEFAULT_OUTPUT_DIR = "tests/generated"
DEFAULT_WORKERS = 4


@dataclass
class GeneratorConfig:
    """Settings for scanning and generation.

    Attributes:
        output_dir: Directory receiving generated modules
        suffix: Suffix appended to generated class names
        workers: Number of parallel scanning threads
        order_gating: "order" (order != 0) or "timeout" (legacy timeout > 0)
        duplicate_names: "suffix" renames colliding methods, "error" fails the class
        exclude: Extra directory names skipped during discovery
    """

    output_dir: str = DEFAULT_OUTPUT_DIR
    suffix: str = GENERATED_SUFFIX
    workers: int = DEFAULT_WORKERS
    order_gating: str = "order"
    duplicate_names: str = "suffix"
    exclude: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check value types and choices.

        Raises:
            ConfigException: If a value is invalid
        """
        if not isinstance(self.output_dir, str) or not self.output_dir:
            raise ConfigException("output_dir must be a non-empty string")
        if not isinstance(self.suffix, str) or not self.suffix.isidentifier():
            raise ConfigException(f"suffix must be a valid identifier, got: {self.suffix!r}")
        if isinstance(self.workers, bool) or not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigException(f"workers must be a positive integer, got: {self.workers!r}")
        if self.order_gating not in ORDER_GATING_CHOICES:
            raise ConfigException(
                f"order_gating must be one of {', '.join(ORDER_GATING_CHOICES)}, "
                f"got: {self.order_gating!r}"
            )
        if self.duplicate_names not in DUPLICATE_POLICIES:
            raise ConfigException(
                f"duplicate_names must be one of {', '.join(DUPLICATE_POLICIES)}, "
                f"got: {self.duplicate_names!r}"
            )
        if not isinstance(self.exclude, list) or not all(isinstance(e, str) for e in self.exclude):
            raise ConfigException("exclude must be a list of directory names")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GeneratorConfig":
        """Create config from a parsed mapping.

        Raises:
            ConfigException: If keys are unknown or values invalid
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigException(f"Unknown config key(s): {', '.join(unknown)}")
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "output_dir": self.output_dir,
            "suffix": self.suffix,
            "workers": self.workers,
            "order_gating": self.order_gating,
            "duplicate_names": self.duplicate_names,
            "exclude": list(self.exclude),
        }


def find_config_file(project_path: str) -> Optional[Path]:
    """Return the config file in a project root, if present."""
    root = Path(project_path)
    if root.is_file():
        root = root.parent
    for name in CONFIG_FILE_NAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def load_config(
    config_path: Optional[str] = None, project_path: str = "."
) -> GeneratorConfig:
    """Load generator configuration.

    Args:
        config_path: Explicit config file; searched in project_path if omitted
        project_path: Project root used for config discovery

    Returns:
        GeneratorConfig (defaults when no config file exists)

    Raises:
        ConfigException: If the file cannot be read, parsed or validated
    """
    path = Path(config_path) if config_path else find_config_file(project_path)
    if path is None:
        return GeneratorConfig()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigException(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigException(f"Invalid YAML in config file {path}: {e}") from e

    if data is None:
        return GeneratorConfig()
    if not isinstance(data, dict):
        raise ConfigException(f"Config file {path} must contain a mapping")
    return GeneratorConfig.from_dict(data)

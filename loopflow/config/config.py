"""
Core configuration management for loopflow
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

logger = logging.getLogger(__name__)

COUNT_MODES = ("per_loop", "per_anchor")


@dataclass
class Config:
    """Main configuration class for loop community analysis"""

    # General settings
    project_name: str = "loopflow_analysis"

    # Output path
    output_dir: Optional[str] = None

    # Analysis parameters
    loops: Dict[str, Any] = field(default_factory=dict)
    annotation: Dict[str, Any] = field(default_factory=dict)
    communities: Dict[str, Any] = field(default_factory=dict)
    statistics: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Fill in missing keys of every section with defaults"""
        self.loops = {**self._get_default_loops(), **(self.loops or {})}
        self.annotation = {**self._get_default_annotation(), **(self.annotation or {})}
        self.communities = {
            **self._get_default_communities(),
            **(self.communities or {}),
        }
        self.statistics = {**self._get_default_statistics(), **(self.statistics or {})}

    def _get_default_loops(self) -> Dict[str, Any]:
        """Default loop table configuration"""
        return {
            "status_column": "status",
            "standard_chromosomes_only": False,
        }

    def _get_default_annotation(self) -> Dict[str, Any]:
        """Default anchor annotation configuration"""
        return {
            "promoter_tag": "promoter",
            "enhancer_tag": "enhancer",
            "promoter_upstream": 2000,
            "promoter_downstream": 200,
            "exclude_promoter_enhancers": True,
        }

    def _get_default_communities(self) -> Dict[str, Any]:
        """Default community detection configuration"""
        return {
            "distinguished_status": "gained",
            "include_singletons": False,
            "count_mode": "per_loop",
        }

    def _get_default_statistics(self) -> Dict[str, Any]:
        """Default statistical comparison configuration"""
        return {
            "alpha": 0.05,
            "multiple_testing_correction": "fdr_bh",
            "compare_columns": ["size", "enhancer_to_promoter_ratio"],
        }

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(config_file: Union[str, Path]) -> Config:
    """Load configuration from YAML or JSON file"""
    config_path = Path(config_file)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from {config_path}")

    with open(config_path, "r") as f:
        if config_path.suffix.lower() in [".yaml", ".yml"]:
            try:
                config_dict = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Malformed YAML in {config_path}: {e}") from e
        elif config_path.suffix.lower() == ".json":
            config_dict = json.load(f)
        else:
            raise ValueError(f"Unsupported config file format: {config_path.suffix}")

    return Config(**(config_dict or {}))


def save_config(config: Config, output_file: Union[str, Path]) -> None:
    """Save configuration to a YAML or JSON file, chosen by suffix"""
    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.to_dict()

    with open(output_path, "w") as f:
        if output_path.suffix.lower() == ".json":
            json.dump(config_dict, f, indent=2)
        else:
            yaml.dump(config_dict, f, default_flow_style=False, indent=2)

    logger.info(f"Configuration saved to {output_path}")


def validate_config(config: Config) -> List[str]:
    """Validate configuration and return list of issues"""
    issues = []

    upstream = config.annotation.get("promoter_upstream", 0)
    downstream = config.annotation.get("promoter_downstream", 0)
    if upstream < 0 or downstream < 0:
        issues.append("Promoter upstream/downstream distances must be non-negative")

    if config.annotation.get("promoter_tag") == config.annotation.get("enhancer_tag"):
        issues.append("Promoter and enhancer tags must differ")

    count_mode = config.communities.get("count_mode")
    if count_mode not in COUNT_MODES:
        issues.append(f"count_mode must be one of {list(COUNT_MODES)}, got {count_mode!r}")

    if not config.communities.get("distinguished_status"):
        issues.append("A distinguished loop status must be specified")

    alpha = config.statistics.get("alpha", 0.05)
    if not 0 < alpha < 1:
        issues.append("Significance level alpha must lie in (0, 1)")

    return issues


def get_default_config() -> Config:
    """Get default configuration object"""
    return Config()

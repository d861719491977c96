"""
Vault Configuration - Centralized configuration management.

Provides:
1. Sectioned configuration with defaults
2. Environment variable overrides (EDV_* prefix)
3. Config file loading (JSON/TOML/YAML)
4. Validation on construction and via validate()

Configuration Hierarchy (highest to lowest priority):
1. Environment variables
2. Config file
3. Default values

Example:
    config = VaultConfig.load("vault.yaml")
    print(config.rewards.rate_per_day)

    # Override with environment
    # EDV_REWARDS_RATE_PER_DAY=25
"""

from __future__ import annotations

import json
import logging
import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .identity import Address

logger = logging.getLogger(__name__)

DAY_SECONDS = 86_400
MAX_BASIS_POINTS = 10_000

# EDV_LOG_LEVEL is accepted as well as EDV_LOGGING_LEVEL
_SECTION_ALIASES = {"log": "logging"}

# Fields whose env values are taken verbatim (hex without 0x may be all digits)
_STRING_FIELDS = {
    ("allowlist", "root"),
    ("royalty", "receiver"),
    ("logging", "level"),
    ("logging", "format"),
    ("logging", "file"),
}


# =============================================================================
# Configuration Sections
# =============================================================================

@dataclass
class SupplyConfig:
    """Issuance cap."""
    cap: int = 1000

    def __post_init__(self):
        if self.cap <= 0:
            raise ValueError("cap must be positive")


@dataclass
class PricingConfig:
    """Prices in the smallest payment unit."""
    base_price: int = 80_000_000_000_000_000  # 0.08 of a 18-decimal currency
    discount_price: int = 50_000_000_000_000_000

    def __post_init__(self):
        if self.base_price < 0 or self.discount_price < 0:
            raise ValueError("prices must be non-negative")
        if self.discount_price > self.base_price:
            raise ValueError("discount_price must not exceed base_price")


@dataclass
class RewardConfig:
    """Accrual schedule: rate_per_day reward units per whole day in custody."""
    rate_per_day: int = 10
    day_seconds: int = DAY_SECONDS

    def __post_init__(self):
        if self.rate_per_day <= 0:
            raise ValueError("rate_per_day must be positive")
        if self.day_seconds <= 0:
            raise ValueError("day_seconds must be positive")


@dataclass
class AllowlistConfig:
    """Commitment (Merkle root) over the discount-eligible identities."""
    root: str = "0x" + "00" * 32

    def __post_init__(self):
        if not isinstance(self.root, str):
            raise ValueError("allowlist root must be a hex string")
        self.root_bytes()

    def root_bytes(self) -> bytes:
        text = self.root[2:] if self.root.startswith(("0x", "0X")) else self.root
        try:
            raw = bytes.fromhex(text)
        except ValueError as e:
            raise ValueError(f"allowlist root is not hex: {self.root}") from e
        if len(raw) != 32:
            raise ValueError(f"allowlist root must be 32 bytes, got {len(raw)}")
        return raw


@dataclass
class RoyaltyConfig:
    """Static secondary-sale royalty."""
    receiver: str = "0x" + "00" * 20
    basis_points: int = 500

    def __post_init__(self):
        if not isinstance(self.receiver, str):
            raise ValueError("royalty receiver must be a hex string")
        Address.from_hex(self.receiver)
        if not (0 <= self.basis_points <= MAX_BASIS_POINTS):
            raise ValueError(f"basis_points must be in [0, {MAX_BASIS_POINTS}]")

    def receiver_address(self) -> Address:
        return Address.from_hex(self.receiver)


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "text"  # "json" or "text"
    file: Optional[str] = None
    redact: bool = True

    def __post_init__(self):
        self.level = str(self.level).upper()
        self.format = str(self.format).lower()
        self.redact = bool(self.redact)


# =============================================================================
# Main Configuration
# =============================================================================

@dataclass
class VaultConfig:
    """
    Main vault configuration.

    Combines all configuration sections into a single object.
    """
    supply: SupplyConfig = field(default_factory=SupplyConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    rewards: RewardConfig = field(default_factory=RewardConfig)
    allowlist: AllowlistConfig = field(default_factory=AllowlistConfig)
    royalty: RoyaltyConfig = field(default_factory=RoyaltyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(
        cls,
        config_file: Optional[Union[str, Path]] = None,
        env_prefix: str = "EDV",
    ) -> "VaultConfig":
        """
        Load configuration with hierarchy: env vars > config file > defaults.

        Args:
            config_file: Path to config file (JSON, TOML or YAML)
            env_prefix: Prefix for environment variables

        Returns:
            Loaded and validated configuration
        """
        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = cls._load_file(Path(config_file))

        config_dict = cls._apply_env_overrides(config_dict, env_prefix)

        config = cls._from_dict(config_dict)
        config.validate()
        return config

    @classmethod
    def _load_file(cls, path: Path) -> Dict[str, Any]:
        """Load configuration from file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return {}

        content = path.read_text(encoding="utf-8")

        if path.suffix == ".json":
            parsed = json.loads(content)
        elif path.suffix == ".toml":
            parsed = tomllib.loads(content)
        elif path.suffix in {".yaml", ".yml"}:
            parsed = yaml.safe_load(content)
        else:
            logger.warning(f"Unknown config file format: {path.suffix}")
            return {}

        if not isinstance(parsed, dict):
            raise ValueError(f"Config file {path} must be a mapping at top level")
        return parsed

    @classmethod
    def _apply_env_overrides(cls, config: Dict[str, Any], prefix: str) -> Dict[str, Any]:
        """Apply environment variable overrides."""
        for key, value in os.environ.items():
            if not key.startswith(f"{prefix}_"):
                continue

            # EDV_REWARDS_RATE_PER_DAY -> rewards.rate_per_day
            parts = key[len(prefix) + 1:].lower().split("_")

            if len(parts) < 2:
                continue

            section = _SECTION_ALIASES.get(parts[0], parts[0])
            field_name = "_".join(parts[1:])

            if (section, field_name) in _STRING_FIELDS:
                parsed: Any = value
            else:
                parsed = cls._parse_env_value(value)
            config.setdefault(section, {})[field_name] = parsed

        return config

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        """Parse environment variable value to appropriate type."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        # Hex strings (addresses, roots) stay strings
        if value.lower().startswith("0x"):
            return value

        try:
            return int(value)
        except ValueError:
            pass

        return value

    @classmethod
    def _from_dict(cls, config_dict: Dict[str, Any]) -> "VaultConfig":
        """Build config object from dictionary."""
        known = {"supply", "pricing", "rewards", "allowlist", "royalty", "logging"}
        unknown = set(config_dict) - known
        if unknown:
            logger.warning(f"Ignoring unknown config sections: {sorted(unknown)}")
        return cls(
            supply=SupplyConfig(**config_dict.get("supply", {})),
            pricing=PricingConfig(**config_dict.get("pricing", {})),
            rewards=RewardConfig(**config_dict.get("rewards", {})),
            allowlist=AllowlistConfig(**config_dict.get("allowlist", {})),
            royalty=RoyaltyConfig(**config_dict.get("royalty", {})),
            logging=LoggingConfig(**config_dict.get("logging", {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration as JSON or YAML (by suffix)."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        if path.suffix in {".yaml", ".yml"}:
            path.write_text(yaml.safe_dump(self.to_dict(), sort_keys=True), encoding="utf-8")
        else:
            path.write_text(self.to_json(), encoding="utf-8")

    def validate(self) -> None:
        """Cross-section validation; per-section checks run in __post_init__."""
        if self.logging.level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid logging level: {self.logging.level}")

        if self.logging.format not in ("json", "text"):
            raise ValueError(f"Invalid logging format: {self.logging.format}")

        if self.supply.cap >= 1 << 96:
            raise ValueError("cap must fit a 96-bit unit identifier")

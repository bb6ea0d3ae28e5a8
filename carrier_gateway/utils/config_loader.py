"""
Configuration loader for the carrier catalogue
"""

import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from carrier_gateway.integrations.contracts.carriers import ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "carriers.yml"


class CarrierEntry(BaseModel):
    """One carrier block of the catalogue"""

    name: str
    base_url: str
    timeout_seconds: float = Field(default=30.0, gt=0)
    retry_attempts: int = Field(default=3, ge=0, le=10)
    rate_limit_per_minute: int = Field(default=60, ge=1, le=10_000)
    # routing field -> environment variable holding its value
    routing_env: Dict[str, str] = Field(default_factory=dict)


class CarrierCatalogue(BaseModel):
    """Complete carrier catalogue"""

    carriers: List[CarrierEntry] = Field(default_factory=list)


def env_prefix(carrier_name: str) -> str:
    """``Liberty Mutual`` -> ``LIBERTY_MUTUAL``"""
    return re.sub(r"[^A-Z0-9]+", "_", carrier_name.strip().upper()).strip("_")


def load_carrier_catalogue(config_path: Optional[Path] = None) -> CarrierCatalogue:
    """
    Load and validate the carrier catalogue from YAML

    Args:
        config_path: Path to config file. Defaults to ``CARRIER_CONFIG_PATH``
            or config/carriers.yml

    Returns:
        Validated CarrierCatalogue object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config doesn't match schema
    """
    if config_path is None:
        env_path = os.getenv("CARRIER_CONFIG_PATH")
        config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(f"Carrier config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    try:
        catalogue = CarrierCatalogue(**data)
        logger.info("Loaded %d carriers from %s", len(catalogue.carriers), config_path)
        return catalogue
    except ValidationError as e:
        logger.error("Carrier config validation failed: %s", e)
        raise


def build_provider_configs(
    catalogue: CarrierCatalogue,
    environ: Optional[Mapping[str, str]] = None,
) -> List[ProviderConfig]:
    """
    Overlay environment variables on the catalogue.

    Per carrier: ``{PREFIX}_API_URL`` overrides the catalogue URL,
    ``{PREFIX}_API_KEY`` is the bearer credential (may be absent),
    ``{PREFIX}_WEBHOOK_SECRET`` enables signature checks, and every
    ``routing_env`` variable that is set becomes a routing code.
    """
    env = os.environ if environ is None else environ
    configs: List[ProviderConfig] = []
    for entry in catalogue.carriers:
        prefix = env_prefix(entry.name)
        routing_codes = {
            field_name: env[var_name]
            for field_name, var_name in entry.routing_env.items()
            if env.get(var_name)
        }
        configs.append(
            ProviderConfig(
                name=entry.name,
                base_url=env.get(f"{prefix}_API_URL") or entry.base_url,
                api_key=env.get(f"{prefix}_API_KEY", ""),
                timeout_seconds=entry.timeout_seconds,
                retry_attempts=entry.retry_attempts,
                rate_limit_per_minute=entry.rate_limit_per_minute,
                webhook_secret=env.get(f"{prefix}_WEBHOOK_SECRET") or None,
                routing_codes=routing_codes,
            )
        )
    return configs


def load_provider_configs(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> List[ProviderConfig]:
    return build_provider_configs(load_carrier_catalogue(config_path), environ)

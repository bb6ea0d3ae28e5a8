"""
Utility modules for the carrier gateway
"""
from .config_loader import build_provider_configs, env_prefix, load_carrier_catalogue, load_provider_configs

__all__ = [
    'build_provider_configs',
    'env_prefix',
    'load_carrier_catalogue',
    'load_provider_configs',
]

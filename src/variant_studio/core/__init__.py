"""Core module for Food Variant Studio business logic."""

from variant_studio.core.config import (
    CONFIG_FILE,
    PROJECT_ROOT,
    ServiceSettings,
    configure_logging,
    get_api_host,
    get_api_port,
    get_max_edge,
    load_service_settings,
)

__all__ = [
    "CONFIG_FILE",
    "PROJECT_ROOT",
    "ServiceSettings",
    "configure_logging",
    "get_api_host",
    "get_api_port",
    "get_max_edge",
    "load_service_settings",
]

"""
Configuration package for the exporter: YAML config and credential loaders.
"""

from .loader import ExporterConfig, load_credentials, load_exporter_config

__all__ = ["ExporterConfig", "load_credentials", "load_exporter_config"]

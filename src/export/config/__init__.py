from .config_loader import ENV_OVERRIDES, ExportConfig, load_config

__all__ = ["ENV_OVERRIDES", "ExportConfig", "load_config"]

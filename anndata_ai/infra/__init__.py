from .config import AppConfig, get_config

__all__ = ["AppConfig", "get_config"]

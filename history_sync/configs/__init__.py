from history_sync.configs.config import Config
from history_sync.configs.settings import Settings, get_settings

__all__ = ["Config", "Settings", "get_settings"]

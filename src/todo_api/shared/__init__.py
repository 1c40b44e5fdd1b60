from .config import Config, load_config
from .logger import Logger, setup_logging

__all__ = ["Config", "Logger", "load_config", "setup_logging"]

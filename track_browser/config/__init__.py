from .loader import load_browser_config, parse_browser_config, resolve_data_path
from .model import BrowserConfig

__all__ = ["BrowserConfig", "load_browser_config", "parse_browser_config", "resolve_data_path"]

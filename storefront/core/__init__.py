# Core modules

from .config import settings, get_settings, Settings
from .context import RequestContext

__all__ = ["settings", "get_settings", "Settings", "RequestContext"]

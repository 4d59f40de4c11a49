from .loader import load_config
from .models import MdRenderConfig, RenderConfig

__all__ = [
    "MdRenderConfig",
    "RenderConfig",
    "load_config",
]

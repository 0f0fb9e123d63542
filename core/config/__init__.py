from .loader import ConfigLoader, shop_config

__all__ = ["ConfigLoader", "shop_config"]

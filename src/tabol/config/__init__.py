from tabol.config.settings import Settings, settings

__all__ = ["Settings", "settings"]

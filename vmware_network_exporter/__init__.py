from .version import EXPORTER_VERSION

__all__ = ["EXPORTER_VERSION"]

class ExporterError(Exception):
    """Base error for the network exporter."""


class ConfigError(ExporterError):
    pass


class SessionError(ExporterError, ConnectionError):
    """The vCenter session could not be established."""


class ClusterNotFoundError(ExporterError):
    def __init__(self, name: str) -> None:
        super().__init__(f"No se encontro el cluster: {name}")
        self.name = name


class AmbiguousClusterError(ExporterError):
    def __init__(self, name: str, count: int) -> None:
        super().__init__(f"El nombre de cluster {name} es ambiguo ({count} coincidencias)")
        self.name = name
        self.count = count


class VlanResolutionError(ValueError):
    """VLAN data on a port group could not be classified."""

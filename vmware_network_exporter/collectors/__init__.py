from .context import CollectorContext
from .switches import collect as collect_switches
from .host_network import collect as collect_host_network
from .resource_pools import collect as collect_resource_pools

# Run order; keys double as the module-bypass names
COLLECTORS = {
    "switches": collect_switches,
    "hosts": collect_host_network,
    "resource_pools": collect_resource_pools,
}

__all__ = ["CollectorContext", "COLLECTORS"]

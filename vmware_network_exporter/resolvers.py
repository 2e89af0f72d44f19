import logging
from typing import Dict, Optional, Tuple

from .models import ParentType


class InventoryResolver:
    def __init__(self, session, logger: Optional[logging.Logger] = None) -> None:
        self.session = session
        self.logger = logger or logging.getLogger("vmware_network_exporter")
        self._dvportgroup_map: Optional[Dict[str, str]] = None
        self._dvs_map: Optional[Dict[str, str]] = None

    def resolve_dvportgroup_name(self, portgroup_key: str) -> str:
        if not portgroup_key:
            return ""
        if self._dvportgroup_map is None:
            self._load_distributed_inventory()
        return self._dvportgroup_map.get(portgroup_key, portgroup_key)

    def resolve_dvs_name(self, switch_uuid: str) -> str:
        if not switch_uuid:
            return ""
        if self._dvs_map is None:
            self._load_distributed_inventory()
        return self._dvs_map.get(switch_uuid, switch_uuid)

    def resolve_pool_parent(self, pool, cluster) -> Tuple[ParentType, str]:
        """Top-level pools hang from the hidden root pool; report the cluster instead."""
        parent = pool.parent
        if parent is None:
            return ParentType.RESOURCE_POOL, ""
        if parent == cluster or parent == cluster.resourcePool:
            return ParentType.CLUSTER, cluster.name
        return ParentType.RESOURCE_POOL, parent.name

    def _load_distributed_inventory(self) -> None:
        portgroups: Dict[str, str] = {}
        switches: Dict[str, str] = {}
        try:
            for dvs in self.session.list_distributed_switches():
                try:
                    switches[dvs.uuid] = dvs.name
                    for portgroup in self.session.list_port_groups(dvs):
                        if portgroup.key:
                            portgroups[portgroup.key] = portgroup.name
                except Exception as exc:
                    self.logger.debug("No se pudo leer dvSwitch: %s", exc)
        except Exception as exc:
            self.logger.debug("No se pudo cargar inventario distribuido: %s", exc)
        self._dvportgroup_map = portgroups
        self._dvs_map = switches

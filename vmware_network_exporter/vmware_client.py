import logging
import ssl
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Set
from urllib.parse import urlparse

from pyVim.connect import SmartConnect, Disconnect
from pyVmomi import vim

from .errors import AmbiguousClusterError, ClusterNotFoundError, SessionError


def _parse_server(server: str):
    if "://" not in server:
        server = f"https://{server}"

    parsed = urlparse(server)
    host = parsed.hostname
    port = parsed.port

    if not host:
        raise ValueError(f"Servidor invalido: {server}")

    if port is None:
        port = 443 if parsed.scheme == "https" else 80

    return host, port


def connect(server: str, user: str, password: str, insecure: bool):
    try:
        host, port = _parse_server(server)
    except ValueError as exc:
        raise SessionError(str(exc)) from exc

    ssl_context = None
    if insecure:
        ssl_context = ssl.create_default_context()
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE

    try:
        service_instance = SmartConnect(
            host=host,
            user=user,
            pwd=password,
            port=port,
            sslContext=ssl_context,
        )
    except Exception as exc:
        raise SessionError(f"No se pudo conectar a {server}: {exc}") from exc

    if not isinstance(service_instance, vim.ServiceInstance):
        raise SessionError("No se obtuvo una instancia de servicio valida")

    return service_instance


def disconnect(service_instance):
    if service_instance is not None:
        Disconnect(service_instance)


class VSphereSession:
    """Read-only view of one vCenter connection.

    Every collector receives this handle explicitly. Methods return the raw
    pyVmomi objects; normalization happens in the collectors.
    """

    def __init__(self, service_instance, logger: Optional[logging.Logger] = None) -> None:
        self.service_instance = service_instance
        self.content = service_instance.RetrieveContent()
        self.logger = logger or logging.getLogger("vmware_network_exporter")
        self._dvs_cache: Optional[List[object]] = None
        self._role_names: Optional[Dict[int, str]] = None

    @property
    def about(self):
        return getattr(self.content, "about", None)

    def _container_objects(self, vim_type) -> List[object]:
        view = self.content.viewManager.CreateContainerView(
            self.content.rootFolder, [vim_type], True
        )
        try:
            return list(view.view)
        finally:
            try:
                view.Destroy()
            except Exception:
                self.logger.debug("No se pudo destruir la vista %s", vim_type, exc_info=True)

    # Switches
    def list_distributed_switches(self) -> List[object]:
        if self._dvs_cache is None:
            self._dvs_cache = self._container_objects(vim.DistributedVirtualSwitch)
        return list(self._dvs_cache)

    def list_port_groups(self, switch) -> List[object]:
        return list(switch.portgroup or [])

    def list_hosts(self) -> List[object]:
        return self._container_objects(vim.HostSystem)

    def _host_network(self, host):
        config = host.config
        return config.network if config else None

    def list_standard_switches(self, host) -> List[object]:
        network = self._host_network(host)
        if network is None:
            return []
        return list(network.vswitch or [])

    def list_standard_port_groups(self, host, switch_name: str) -> List[object]:
        network = self._host_network(host)
        if network is None:
            return []
        return [
            portgroup
            for portgroup in network.portgroup or []
            if portgroup.spec and portgroup.spec.vswitchName == switch_name
        ]

    def list_host_distributed_switches(self, host) -> List[object]:
        network = self._host_network(host)
        if network is None:
            return []
        uuids = {proxy.dvsUuid for proxy in network.proxySwitch or [] if proxy.dvsUuid}
        if not uuids:
            return []
        return [dvs for dvs in self.list_distributed_switches() if dvs.uuid in uuids]

    # VMkernel
    def list_vmkernel_adapters(self, host) -> List[object]:
        network = self._host_network(host)
        if network is None:
            return []
        return list(network.vnic or [])

    def vmkernel_services(self, host) -> Dict[str, Set[str]]:
        """Map VMkernel device name (vmk0) to the nicTypes selected on it."""
        services: Dict[str, Set[str]] = {}
        config = host.config
        nic_info = getattr(config, "virtualNicManagerInfo", None) if config else None
        if nic_info is None:
            return services
        for net_config in nic_info.netConfig or []:
            selected = list(net_config.selectedVnic or [])
            for candidate in net_config.candidateVnic or []:
                key = candidate.key or ""
                if any(item == key or item.endswith("." + key) or key.endswith("." + item) for item in selected):
                    services.setdefault(candidate.device, set()).add(net_config.nicType)
        return services

    # Resource pools
    def resolve_cluster(self, name: str):
        matches = [
            cluster
            for cluster in self._container_objects(vim.ClusterComputeResource)
            if cluster.name == name
        ]
        if not matches:
            raise ClusterNotFoundError(name)
        if len(matches) > 1:
            raise AmbiguousClusterError(name, len(matches))
        return matches[0]

    def list_resource_pools(self, cluster) -> List[object]:
        """Depth-first walk below the cluster root pool; parents precede children."""
        root = cluster.resourcePool
        if root is None:
            return []
        pools = []
        stack = list(reversed(root.resourcePool or []))
        while stack:
            pool = stack.pop()
            pools.append(pool)
            stack.extend(reversed(pool.resourcePool or []))
        return pools

    def list_workloads(self, pool) -> List[object]:
        return list(pool.vm or [])

    def list_permissions(self, entity) -> List[object]:
        manager = self.content.authorizationManager
        return list(manager.RetrieveEntityPermissions(entity=entity, inherited=False) or [])

    def role_name(self, role_id: int) -> str:
        if self._role_names is None:
            manager = self.content.authorizationManager
            self._role_names = {role.roleId: role.name for role in manager.roleList or []}
        return self._role_names.get(role_id, str(role_id))


@contextmanager
def open_session(config, logger: Optional[logging.Logger] = None) -> Iterator[VSphereSession]:
    service_instance = connect(
        server=config.server,
        user=config.user,
        password=config.password,
        insecure=config.insecure,
    )
    try:
        yield VSphereSession(service_instance, logger=logger)
    finally:
        disconnect(service_instance)

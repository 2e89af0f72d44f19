from typing import List, Optional, Tuple

from .context import CollectorContext
from ..errors import VlanResolutionError
from ..models import (
    DistributedSwitchRecord,
    NoVlan,
    PortBindingMode,
    PortGroupRecord,
    StandardSwitchRecord,
)
from ..results import CollectionResult, ItemWarning, Ok, partition
from ..vlan import candidates_from_dvs_spec, resolve_vlan

BINDING_MODES = {
    "earlyBinding": PortBindingMode.STATIC,
    "lateBinding": PortBindingMode.DYNAMIC,
    "ephemeral": PortBindingMode.EPHEMERAL,
}


def _degrade_vlan(context: CollectorContext, entity: str, exc: Exception):
    context.logger.warning("VLAN no resoluble en %s: %s", entity, exc)
    context.diagnostics.add_warning("PortGroup", entity, str(exc))
    return NoVlan(), ItemWarning(entity, f"VLAN no resoluble: {exc}")


def _classify(context: CollectorContext, entity: str, **candidates):
    """Resolve VLAN candidates; malformed data degrades to NoVlan with a soft warning."""
    try:
        return resolve_vlan(**candidates), None
    except VlanResolutionError as exc:
        return _degrade_vlan(context, entity, exc)


def _uplink_portgroup_keys(config) -> set:
    keys = set()
    for uplink in getattr(config, "uplinkPortgroup", None) or []:
        key = getattr(uplink, "key", None)
        if key:
            keys.add(key)
    return keys


def _distributed_port_group(context: CollectorContext, switch_name: str, portgroup, uplink_keys=frozenset()):
    """One dvPortgroup as a list of results; uplink port groups yield nothing."""
    name = portgroup.name
    entity = f"{switch_name}:{name}"
    try:
        config = portgroup.config
        if portgroup.key in uplink_keys or getattr(config, "uplink", False):
            return []
        context.diagnostics.add_attempt("PortGroup")
        port_config = getattr(config, "defaultPortConfig", None)
        vlan_spec = getattr(port_config, "vlan", None) if port_config else None
        try:
            candidates = candidates_from_dvs_spec(vlan_spec)
        except Exception as exc:
            vlan, warning = _degrade_vlan(context, entity, exc)
        else:
            vlan, warning = _classify(context, entity, **candidates)

        record = PortGroupRecord(
            name=name,
            num_ports=getattr(config, "numPorts", 0) or 0,
            vlan_classification=vlan,
            key=portgroup.key,
            port_binding_mode=BINDING_MODES.get(getattr(config, "type", None)),
            auto_expand=bool(getattr(config, "autoExpand", False)),
        )
        context.diagnostics.add_success("PortGroup")
        return [Ok(record)] + ([warning] if warning else [])
    except Exception as exc:
        context.diagnostics.add_error("PortGroup", entity, exc)
        context.logger.warning("No se pudo normalizar port group %s: %s", entity, exc)
        return [ItemWarning(entity, str(exc))]


def collect_distributed_switch(
    context: CollectorContext, dvs
) -> Tuple[Optional[DistributedSwitchRecord], List[ItemWarning]]:
    """Normalize one distributed switch and its port groups.

    Port group enumeration failures leave the switch with no port groups and
    a warning; a switch whose own properties cannot be read yields ``None``.
    """
    diagnostics = context.diagnostics
    logger = context.logger
    name = getattr(dvs, "name", "") or "<unknown>"
    warnings: List[ItemWarning] = []

    diagnostics.add_attempt("DistributedSwitch")
    try:
        config = dvs.config
        summary = dvs.summary
        product = getattr(summary, "productInfo", None) if summary else None
        contact = getattr(config, "contact", None)
        ldp = getattr(config, "linkDiscoveryProtocolConfig", None)
        uplink_policy = getattr(config, "uplinkPortPolicy", None)
        uplink_names = list(getattr(uplink_policy, "uplinkPortName", None) or [])
    except Exception as exc:
        diagnostics.add_error("DistributedSwitch", name, exc)
        logger.warning("No se pudo leer dvSwitch %s: %s", name, exc)
        return None, [ItemWarning(name, str(exc))]

    port_groups: List[PortGroupRecord] = []
    try:
        uplink_keys = _uplink_portgroup_keys(config)
        results = []
        for portgroup in context.session.list_port_groups(dvs):
            results.extend(_distributed_port_group(context, name, portgroup, uplink_keys))
        port_groups, pg_warnings = partition(results)
        warnings.extend(pg_warnings)
    except Exception as exc:
        diagnostics.add_error("DistributedSwitch", name, exc)
        logger.warning("No se pudieron enumerar port groups de %s: %s", name, exc)
        warnings.append(ItemWarning(name, f"port groups: {exc}"))
        port_groups = []

    record = DistributedSwitchRecord(
        name=dvs.name,
        mtu=getattr(config, "maxMtu", None),
        max_ports=getattr(config, "maxPorts", None),
        num_standalone_ports=getattr(config, "numStandalonePorts", None),
        uuid=dvs.uuid or "",
        version=getattr(product, "version", "") or "",
        vendor=getattr(product, "vendor", "") or "",
        build=getattr(product, "build", "") or "",
        link_discovery_protocol=getattr(ldp, "protocol", None) if ldp else None,
        contact_info=getattr(contact, "contact", "") or "" if contact else "",
        contact_name=getattr(contact, "name", "") or "" if contact else "",
        description=getattr(config, "description", "") or "",
        num_uplink_ports=len(uplink_names),
        uplink_port_names=uplink_names,
        port_groups=port_groups,
    )
    diagnostics.add_success("DistributedSwitch")
    return record, warnings


def _uplink_devices(vswitch) -> List[str]:
    spec = getattr(vswitch, "spec", None)
    bridge = getattr(spec, "bridge", None) if spec else None
    devices = getattr(bridge, "nicDevice", None) if bridge else None
    if devices:
        return list(devices)
    uplinks = []
    # pnic keys look like 'key-vim.host.PhysicalNic-vmnic0'
    for key in vswitch.pnic or []:
        uplinks.append(key.split("-")[-1] if "-" in key else key)
    return uplinks


def _nic_order(portgroup) -> Tuple[List[str], List[str]]:
    spec = getattr(portgroup, "spec", None)
    for policy in (getattr(portgroup, "computedPolicy", None), getattr(spec, "policy", None)):
        teaming = getattr(policy, "nicTeaming", None) if policy else None
        order = getattr(teaming, "nicOrder", None) if teaming else None
        if order is not None:
            return list(order.activeNic or []), list(order.standbyNic or [])
    return [], []


def _standard_port_group(context: CollectorContext, host_name: str, portgroup):
    spec = portgroup.spec
    name = spec.name
    entity = f"{host_name}:{name}"
    context.diagnostics.add_attempt("PortGroup")
    try:
        vlan, warning = _classify(context, entity, vlan_id=spec.vlanId)
        active, standby = _nic_order(portgroup)
        record = PortGroupRecord(
            name=name,
            num_ports=len(getattr(portgroup, "port", None) or []),
            vlan_classification=vlan,
            active_nics=active,
            standby_nics=standby,
        )
        context.diagnostics.add_success("PortGroup")
        return [Ok(record)] + ([warning] if warning else [])
    except Exception as exc:
        context.diagnostics.add_error("PortGroup", entity, exc)
        context.logger.warning("No se pudo normalizar port group %s: %s", entity, exc)
        return [ItemWarning(entity, str(exc))]


def collect_standard_switches(context: CollectorContext, host, host_name: str) -> CollectionResult:
    """Standard switches of one host. A host without standard switches yields an empty result."""
    session = context.session
    diagnostics = context.diagnostics
    result = CollectionResult()

    try:
        vswitches = session.list_standard_switches(host)
    except Exception as exc:
        diagnostics.add_error("StandardSwitch", host_name, exc)
        context.logger.warning("No se pudieron enumerar vSwitches de %s: %s", host_name, exc)
        result.warnings.append(ItemWarning(host_name, f"standard switches: {exc}"))
        return result

    for vsw in vswitches:
        entity = f"{host_name}:{vsw.name}"
        diagnostics.add_attempt("StandardSwitch")
        try:
            spec = getattr(vsw, "spec", None)
            policy = getattr(spec, "policy", None) if spec else None
            teaming = getattr(policy, "nicTeaming", None) if policy else None

            port_groups: List[PortGroupRecord] = []
            try:
                results = []
                for portgroup in session.list_standard_port_groups(host, vsw.name):
                    results.extend(_standard_port_group(context, host_name, portgroup))
                port_groups, pg_warnings = partition(results)
                result.warnings.extend(pg_warnings)
            except Exception as exc:
                diagnostics.add_error("StandardSwitch", entity, exc)
                context.logger.warning("No se pudieron enumerar port groups de %s: %s", entity, exc)
                result.warnings.append(ItemWarning(entity, f"port groups: {exc}"))

            result.records.append(
                StandardSwitchRecord(
                    name=vsw.name,
                    host_name=host_name,
                    mtu=vsw.mtu,
                    num_ports=vsw.numPorts,
                    uplinks=_uplink_devices(vsw),
                    teaming_policy=getattr(teaming, "policy", "") or "" if teaming else "",
                    port_groups=port_groups,
                )
            )
            diagnostics.add_success("StandardSwitch")
        except Exception as exc:
            diagnostics.add_error("StandardSwitch", entity, exc)
            context.logger.warning("No se pudo leer vSwitch %s: %s", entity, exc)
            result.warnings.append(ItemWarning(entity, str(exc)))

    return result


def collect(context: CollectorContext) -> CollectionResult:
    session = context.session
    logger = context.logger
    result = CollectionResult()

    for dvs in session.list_distributed_switches():
        record, warnings = collect_distributed_switch(context, dvs)
        if record is not None:
            result.records.append(record)
        result.warnings.extend(warnings)

    if not getattr(context.config, "include_standard_switches", False):
        return result

    for host in session.list_hosts():
        host_name = host.name
        standard = collect_standard_switches(context, host, host_name)
        if not standard.records:
            logger.debug("Host %s sin vSwitches estandar", host_name)
        result.extend(standard)

    return result

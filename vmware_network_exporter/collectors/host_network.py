from typing import Dict, List

from .context import CollectorContext
from .switches import collect_distributed_switch, collect_standard_switches
from ..models import HostNetworkProfile, StandardSwitchRecord, VmKernelAdapterRecord, VmKernelService
from ..results import CollectionResult, ItemWarning, Ok, partition

SERVICE_BY_NIC_TYPE = {
    "vmotion": VmKernelService.VMOTION,
    "management": VmKernelService.MANAGEMENT,
    "faultToleranceLogging": VmKernelService.FAULT_TOLERANCE_LOGGING,
    "vsan": VmKernelService.STORAGE_TRAFFIC,
}


def _standard_portgroup_switches(switches: List[StandardSwitchRecord]) -> Dict[str, str]:
    mapping = {}
    for switch in switches:
        for portgroup in switch.port_groups:
            mapping[portgroup.name] = switch.name
    return mapping


def _vmkernel_adapter(context: CollectorContext, host_name: str, vnic, services, pg_switches):
    device = vnic.device
    entity = f"{host_name}:{device}"
    context.diagnostics.add_attempt("VmKernelAdapter")
    try:
        spec = vnic.spec
        ip_settings = spec.ip if spec else None

        portgroup_name = vnic.portgroup or ""
        vswitch_name = pg_switches.get(portgroup_name, "")
        dv_port = getattr(spec, "distributedVirtualPort", None) if spec else None
        if not portgroup_name and dv_port is not None:
            portgroup_name = context.resolver.resolve_dvportgroup_name(dv_port.portgroupKey)
            vswitch_name = context.resolver.resolve_dvs_name(dv_port.switchUuid)

        flags = {
            SERVICE_BY_NIC_TYPE[nic_type]
            for nic_type in services.get(device, ())
            if nic_type in SERVICE_BY_NIC_TYPE
        }

        record = VmKernelAdapterRecord(
            name=device,
            ip_address=(ip_settings.ipAddress or "") if ip_settings else "",
            subnet_mask=(ip_settings.subnetMask or "") if ip_settings else "",
            vswitch_name=vswitch_name,
            port_group_name=portgroup_name,
            mtu=spec.mtu if spec else None,
            mac=(spec.mac or "") if spec else "",
            dhcp=bool(ip_settings.dhcp) if ip_settings else False,
            service_flags=flags,
        )
        context.diagnostics.add_success("VmKernelAdapter")
        return Ok(record)
    except Exception as exc:
        context.diagnostics.add_error("VmKernelAdapter", entity, exc)
        context.logger.warning("No se pudo normalizar VMkernel %s: %s", entity, exc)
        return ItemWarning(entity, str(exc))


def collect_vmkernel_adapters(
    context: CollectorContext, host, host_name: str, standard_switches: List[StandardSwitchRecord]
) -> CollectionResult:
    result = CollectionResult()
    try:
        vnics = context.session.list_vmkernel_adapters(host)
        services = context.session.vmkernel_services(host)
    except Exception as exc:
        context.diagnostics.add_error("VmKernelAdapter", host_name, exc)
        context.logger.warning("No se pudieron enumerar VMkernel de %s: %s", host_name, exc)
        result.warnings.append(ItemWarning(host_name, f"vmkernel adapters: {exc}"))
        return result

    pg_switches = _standard_portgroup_switches(standard_switches)
    records, warnings = partition(
        _vmkernel_adapter(context, host_name, vnic, services, pg_switches) for vnic in vnics
    )
    result.records.extend(records)
    result.warnings.extend(warnings)
    return result


def collect_host(context: CollectorContext, host) -> CollectionResult:
    """Build one HostNetworkProfile; failed sub-collections stay empty."""
    host_name = host.name
    result = CollectionResult()
    context.diagnostics.add_attempt("HostNetwork")

    standard = collect_standard_switches(context, host, host_name)
    result.warnings.extend(standard.warnings)

    distributed = []
    try:
        host_dvs = context.session.list_host_distributed_switches(host)
    except Exception as exc:
        context.diagnostics.add_error("DistributedSwitch", host_name, exc)
        context.logger.warning("No se pudieron enumerar dvSwitches de %s: %s", host_name, exc)
        result.warnings.append(ItemWarning(host_name, f"distributed switches: {exc}"))
        host_dvs = []
    for dvs in host_dvs:
        record, warnings = collect_distributed_switch(context, dvs)
        if record is not None:
            distributed.append(record)
        result.warnings.extend(warnings)

    adapters = collect_vmkernel_adapters(context, host, host_name, standard.records)
    result.warnings.extend(adapters.warnings)

    profile = HostNetworkProfile(
        host_name=host_name,
        switches=standard.records + distributed,
        vm_kernel_adapters=adapters.records,
    )
    result.records.append(profile)
    context.diagnostics.add_success("HostNetwork")
    context.logger.info(
        "Host %s: switches=%s (estandar=%s, distribuidos=%s) vmkernel=%s",
        host_name,
        len(profile.switches),
        len(standard.records),
        len(distributed),
        len(profile.vm_kernel_adapters),
    )
    return result


def collect(context: CollectorContext) -> CollectionResult:
    result = CollectionResult()
    for host in context.session.list_hosts():
        result.extend(collect_host(context, host))

    total_switches = sum(len(profile.switches) for profile in result.records)
    total_adapters = sum(len(profile.vm_kernel_adapters) for profile in result.records)
    context.logger.info(
        "Resumen hosts: hosts=%s switches=%s vmkernel=%s warnings=%s",
        len(result.records),
        total_switches,
        total_adapters,
        len(result.warnings),
    )
    return result

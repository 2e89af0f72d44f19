from __future__ import annotations

import logging

import fakes
from vmware_network_exporter.collectors.host_network import collect
from vmware_network_exporter.models import (
    DistributedSwitchRecord,
    HostNetworkProfile,
    StandardSwitchRecord,
    VmKernelService,
)


def test_host_with_only_distributed_switch(prod_dvs):
    host = fakes.host("esx03.lab.local", dvs_uuids=[prod_dvs.uuid])
    context = fakes.make_context(fakes.build_session(switches=[prod_dvs], hosts=[host]))

    result = collect(context)

    assert len(result.records) == 1
    profile = result.records[0]
    assert isinstance(profile, HostNetworkProfile)
    assert len(profile.switches) == 1
    assert isinstance(profile.switches[0], DistributedSwitchRecord)
    assert profile.switches[0].name == "DVS-Prod"
    assert profile.vm_kernel_adapters == []


def test_profile_collects_switches_and_adapters(prod_dvs, esx01):
    context = fakes.make_context(fakes.build_session(switches=[prod_dvs], hosts=[esx01]))

    profile = collect(context).records[0]

    assert profile.host_name == "esx01.lab.local"
    assert [type(switch) for switch in profile.switches] == [StandardSwitchRecord, DistributedSwitchRecord]

    vmk0, vmk1 = profile.vm_kernel_adapters
    assert vmk0.name == "vmk0"
    assert vmk0.ip_address == "10.0.10.11"
    assert vmk0.subnet_mask == "255.255.255.0"
    assert vmk0.port_group_name == "Management Network"
    assert vmk0.vswitch_name == "vSwitch0"
    assert vmk0.service_flags == {VmKernelService.MANAGEMENT}

    assert vmk1.port_group_name == "PG-App"
    assert vmk1.vswitch_name == "DVS-Prod"
    assert vmk1.mtu == 9000
    assert vmk1.service_flags == {
        VmKernelService.VMOTION,
        VmKernelService.FAULT_TOLERANCE_LOGGING,
        VmKernelService.STORAGE_TRAFFIC,
    }


def test_adapter_without_services_has_empty_flags():
    host = fakes.host("esx04.lab.local", vnics=[fakes.vnic("vmk2", ip="10.0.30.11", mask="255.255.255.0")])
    context = fakes.make_context(fakes.build_session(hosts=[host]))

    adapter = collect(context).records[0].vm_kernel_adapters[0]

    assert adapter.service_flags == set()
    assert adapter.model_dump(by_alias=True)["serviceFlags"] == []


def test_adapter_failure_keeps_host_profile(prod_dvs, esx01):
    esx01.config.network.vnic = fakes.Raise(RuntimeError("NoPermission"))
    other = fakes.host("esx05.lab.local", vnics=[fakes.vnic("vmk0", ip="10.0.10.15")])
    context = fakes.make_context(fakes.build_session(switches=[prod_dvs], hosts=[esx01, other]))

    result = collect(context)

    assert [profile.host_name for profile in result.records] == ["esx01.lab.local", "esx05.lab.local"]
    broken, healthy = result.records
    assert broken.vm_kernel_adapters == []
    assert len(broken.switches) == 2
    assert len(healthy.vm_kernel_adapters) == 1
    assert [warning.entity for warning in result.warnings] == ["esx01.lab.local"]


def test_standard_switch_failure_keeps_distributed(prod_dvs, esx01):
    esx01.config.network.vswitch = fakes.Raise(RuntimeError("timeout"))
    context = fakes.make_context(fakes.build_session(switches=[prod_dvs], hosts=[esx01]))

    profile = collect(context).records[0]

    assert [switch.kind for switch in profile.switches] == ["Distributed"]
    assert len(profile.vm_kernel_adapters) == 2
    # no standard switch record, so the standard port group resolves no switch name
    assert profile.vm_kernel_adapters[0].vswitch_name == ""


def test_run_summary_is_logged(prod_dvs, esx01, caplog):
    context = fakes.make_context(fakes.build_session(switches=[prod_dvs], hosts=[esx01]))

    with caplog.at_level(logging.INFO, logger="tests"):
        collect(context)

    assert "Resumen hosts: hosts=1 switches=2 vmkernel=2 warnings=0" in caplog.text

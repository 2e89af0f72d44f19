from __future__ import annotations

import pytest

import fakes


@pytest.fixture(scope="function")
def prod_dvs():
    return fakes.dvs(
        "DVS-Prod",
        "50 2a 11 aa",
        portgroups=[
            fakes.dv_portgroup("PG-App", "dvportgroup-101", vlan=fakes.vlan_spec(vlan_id=100)),
            fakes.dv_portgroup("DVS-Prod-Uplinks", "dvportgroup-100", uplink=True),
        ],
        uplink_keys=["dvportgroup-100"],
    )


@pytest.fixture(scope="function")
def esx01(prod_dvs):
    return fakes.host(
        "esx01.lab.local",
        vswitches=[fakes.vswitch("vSwitch0", nics=("vmnic0", "vmnic1"))],
        portgroups=[
            fakes.std_portgroup("Management Network", "vSwitch0", vlan_id=10, active=["vmnic0"], standby=["vmnic1"]),
            fakes.std_portgroup("VM Network", "vSwitch0", vlan_id=0, ports=4),
        ],
        vnics=[
            fakes.vnic("vmk0", ip="10.0.10.11", mask="255.255.255.0", portgroup="Management Network"),
            fakes.vnic(
                "vmk1",
                ip="10.0.20.11",
                mask="255.255.255.0",
                dv_port=fakes.Obj(portgroupKey="dvportgroup-101", switchUuid="50 2a 11 aa"),
                mtu=9000,
            ),
        ],
        dvs_uuids=[prod_dvs.uuid],
        services={"vmk0": ["management"], "vmk1": ["vmotion", "faultToleranceLogging", "vsan"]},
    )

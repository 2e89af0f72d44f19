from __future__ import annotations

import pytest

import fakes
from vmware_network_exporter.errors import VlanResolutionError
from vmware_network_exporter.models import NoVlan, PrivateVlan, Vlan, VlanRange
from vmware_network_exporter.vlan import candidates_from_dvs_spec, resolve_vlan


def test_explicit_vlan_id():
    vlan = resolve_vlan(vlan_id=100)
    assert vlan == Vlan(id=100)
    assert vlan.vlan_type == "VLAN"


def test_vlan_id_wins_over_pvlan_and_range():
    vlan = resolve_vlan(vlan_id=100, pvlan_id=5, ranges=[{"Start": 1, "End": 10}])
    assert vlan == Vlan(id=100)


def test_pvlan_wins_over_range():
    vlan = resolve_vlan(pvlan_id=5, ranges=[{"Start": 1, "End": 10}])
    assert vlan == PrivateVlan(id=5)


def test_single_range_from_dict():
    vlan = resolve_vlan(ranges=[{"Start": 100, "End": 200}])
    assert isinstance(vlan, VlanRange)
    assert (vlan.start, vlan.end) == (100, 200)
    assert vlan.vlan_type == "VLANRange"


def test_all_disjoint_ranges_are_kept():
    vlan = resolve_vlan(ranges=[{"start": 100, "end": 200}, {"start": 300, "end": 310}])
    assert (vlan.start, vlan.end) == (100, 200)
    assert [(item.start, item.end) for item in vlan.ranges] == [(100, 200), (300, 310)]
    assert vlan.render() == "100-200,300-310"


def test_nothing_present_is_none():
    assert resolve_vlan() == NoVlan()
    assert resolve_vlan(ranges=[]) == NoVlan()


def test_vlan_zero_is_untagged():
    assert resolve_vlan(vlan_id=0) == NoVlan()


def test_vlan_4095_is_trunk_of_all_vlans():
    vlan = resolve_vlan(vlan_id=4095)
    assert isinstance(vlan, VlanRange)
    assert (vlan.start, vlan.end) == (0, 4094)


@pytest.mark.parametrize(
    "candidates",
    [
        {"vlan_id": "abc"},
        {"vlan_id": True},
        {"vlan_id": 5000},
        {"pvlan_id": -1},
        {"ranges": [{"start": 200, "end": 100}]},
        {"ranges": [{"start": None, "end": 100}]},
        {"ranges": "100-200"},
    ],
)
def test_malformed_candidates_raise(candidates):
    with pytest.raises(VlanResolutionError):
        resolve_vlan(**candidates)


def test_dvs_trunk_spec_feeds_ranges():
    candidates = candidates_from_dvs_spec(fakes.trunk_spec((100, 200)))
    assert list(candidates) == ["ranges"]
    assert resolve_vlan(**candidates) == VlanRange(start=100, end=200, ranges=[{"start": 100, "end": 200}])


def test_dvs_vlan_and_pvlan_specs():
    assert candidates_from_dvs_spec(fakes.vlan_spec(vlan_id=100)) == {"vlan_id": 100}
    assert candidates_from_dvs_spec(fakes.vlan_spec(pvlan_id=7)) == {"pvlan_id": 7}
    assert candidates_from_dvs_spec(None) == {}

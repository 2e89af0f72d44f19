"""VLAN classification policy shared by every port-group walk.

A port group exposes up to three candidate fields: an explicit VLAN id, a
private VLAN id and a list of trunk ranges. The first one present wins, in
that order. Nothing present means no tagging.
"""
from numbers import Integral
from typing import Any, Iterable, List, Optional, Tuple

from .errors import VlanResolutionError
from .models import NoVlan, NumericRange, PrivateVlan, Vlan, VlanRange

MAX_VLAN_ID = 4094
# Standard port groups use 4095 for "all VLANs" (virtual guest tagging)
TRUNK_ALL_VLAN_ID = 4095


def _as_vlan_id(value: Any, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise VlanResolutionError(f"{label} no es entero: {value!r}")
    value = int(value)
    if value < 0 or value > TRUNK_ALL_VLAN_ID:
        raise VlanResolutionError(f"{label} fuera de rango: {value}")
    return value


def _range_bounds(item: Any) -> Tuple[Any, Any]:
    if isinstance(item, dict):
        lowered = {str(key).lower(): value for key, value in item.items()}
        return lowered.get("start"), lowered.get("end")
    return getattr(item, "start", None), getattr(item, "end", None)


def _as_ranges(value: Iterable[Any]) -> List[NumericRange]:
    ranges = []
    for item in value:
        start, end = _range_bounds(item)
        start = _as_vlan_id(start, "VlanRange.start")
        end = _as_vlan_id(end, "VlanRange.end")
        if start > end:
            raise VlanResolutionError(f"Rango VLAN invertido: {start}-{end}")
        ranges.append(NumericRange(start=start, end=end))
    return ranges


def resolve_vlan(vlan_id: Any = None, pvlan_id: Any = None, ranges: Any = None):
    """Return the tagged classification for the given candidate fields.

    ``vlan_id`` 0 means untagged and falls through to the next candidate.
    Raises :class:`VlanResolutionError` when a present field is malformed.
    """
    if vlan_id is not None:
        vlan_id = _as_vlan_id(vlan_id, "VlanId")
        if vlan_id == TRUNK_ALL_VLAN_ID:
            return VlanRange(start=0, end=MAX_VLAN_ID, ranges=[NumericRange(start=0, end=MAX_VLAN_ID)])
        if vlan_id:
            return Vlan(id=vlan_id)

    if pvlan_id is not None:
        pvlan_id = _as_vlan_id(pvlan_id, "PvlanId")
        if pvlan_id:
            return PrivateVlan(id=pvlan_id)

    if ranges:
        if isinstance(ranges, (str, bytes)) or not hasattr(ranges, "__iter__"):
            raise VlanResolutionError(f"VlanRange no es una lista: {ranges!r}")
        parsed = _as_ranges(ranges)
        if parsed:
            first = parsed[0]
            return VlanRange(start=first.start, end=first.end, ranges=parsed)

    return NoVlan()


def candidates_from_dvs_spec(vlan_spec: Optional[Any]) -> dict:
    """Split a dvPortgroup VLAN spec into resolve_vlan keyword candidates.

    The trunk spec reuses ``vlanId`` for its list of ranges, so the type of
    ``vlanId`` decides which candidate it feeds.
    """
    if vlan_spec is None:
        return {}
    candidates = {}
    vlan_id = getattr(vlan_spec, "vlanId", None)
    if isinstance(vlan_id, (list, tuple)):
        candidates["ranges"] = vlan_id
    elif vlan_id is not None:
        candidates["vlan_id"] = vlan_id
    pvlan_id = getattr(vlan_spec, "pvlanId", None)
    if pvlan_id is not None:
        candidates["pvlan_id"] = pvlan_id
    return candidates

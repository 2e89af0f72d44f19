from __future__ import annotations

import pytest

import fakes
from vmware_network_exporter.collectors.resource_pools import RESERVED_POOL_NAMES, collect
from vmware_network_exporter.errors import AmbiguousClusterError, ClusterNotFoundError
from vmware_network_exporter.models import ParentType, SharesLevel


@pytest.fixture
def prod_cluster():
    cluster = fakes.cluster("CL-Prod")
    fakes.pool("vCLS", cluster.resourcePool, vms=["vCLS-1"])
    web = fakes.pool(
        "RP-Web",
        cluster.resourcePool,
        vms=["web01", "web02"],
        cpu=fakes.allocation(level="high", shares=8000, reservation=2000, limit=8000),
        mem=fakes.allocation(level="custom", shares=123456, reservation=4096, expandable=False),
    )
    fakes.pool("RP-Web-Cache", web, vms=["cache01"])
    fakes.pool("RP-Batch", cluster.resourcePool)
    return cluster


def _session(cluster, **kwargs):
    return fakes.build_session(clusters=[cluster], **kwargs)


def test_pools_exclude_reserved_names(prod_cluster):
    context = fakes.make_context(_session(prod_cluster), cluster="CL-Prod")

    result = collect(context)

    names = [record.name for record in result.records]
    assert names == ["RP-Web", "RP-Web-Cache", "RP-Batch"]
    assert not RESERVED_POOL_NAMES.intersection(names)
    assert result.warnings == []


def test_pool_parents_and_allocations(prod_cluster):
    context = fakes.make_context(_session(prod_cluster), cluster="CL-Prod")

    web, cache, batch = collect(context).records

    assert (web.parent_type, web.parent_name) == (ParentType.CLUSTER, "CL-Prod")
    assert (cache.parent_type, cache.parent_name) == (ParentType.RESOURCE_POOL, "RP-Web")
    assert web.cpu_shares_level == SharesLevel.HIGH
    assert web.cpu_shares == 8000
    assert web.cpu_reservation_mhz == 2000
    assert web.cpu_limit_mhz == 8000
    assert web.mem_shares_level == SharesLevel.CUSTOM
    assert web.mem_reservation_mb == 4096
    assert web.mem_expandable_reservation is False
    assert web.contained_workload_names == ["web01", "web02"]
    assert web.selected_for_migration is False
    assert batch.cpu_shares_level == SharesLevel.NORMAL


def test_pool_without_workloads_has_empty_list(prod_cluster):
    context = fakes.make_context(_session(prod_cluster), cluster="CL-Prod")

    batch = collect(context).records[-1]

    assert batch.contained_workload_names == []
    assert batch.model_dump(by_alias=True)["containedWorkloadNames"] == []


def test_cluster_with_only_builtin_pools_is_empty():
    cluster = fakes.cluster("CL-Empty")
    fakes.pool("vCLS", cluster.resourcePool)
    context = fakes.make_context(_session(cluster), cluster="CL-Empty")

    result = collect(context)

    assert result.records == []
    assert result.warnings == []


def test_permissions_resolve_role_names(prod_cluster):
    permissions = {
        "RP-Web": [fakes.permission("LAB\\web-admins", role_id=-1, propagate=True)],
        "RP-Batch": [fakes.permission("LAB\\batch", role_id=-2, propagate=False)],
    }
    context = fakes.make_context(_session(prod_cluster, permissions=permissions), cluster="CL-Prod")

    web, cache, batch = collect(context).records

    assert [(entry.principal, entry.role, entry.propagate) for entry in web.permissions] == [
        ("LAB\\web-admins", "Admin", True)
    ]
    assert cache.permissions == []
    assert [(entry.principal, entry.role) for entry in batch.permissions] == [("LAB\\batch", "ReadOnly")]


def test_permission_failure_only_affects_one_pool(prod_cluster):
    permissions = {
        "RP-Web": RuntimeError("NoPermission"),
        "RP-Batch": [fakes.permission("LAB\\batch", role_id=-2)],
        "RP-Web-Cache": [fakes.permission("LAB\\cache", role_id=-1)],
    }
    context = fakes.make_context(_session(prod_cluster, permissions=permissions), cluster="CL-Prod")

    result = collect(context)

    web, cache, batch = result.records
    assert web.permissions == []
    assert web.contained_workload_names == ["web01", "web02"]
    assert len(cache.permissions) == 1
    assert len(batch.permissions) == 1
    assert [(warning.entity, warning.reason.split(":")[0]) for warning in result.warnings] == [
        ("RP-Web", "permissions")
    ]
    assert context.diagnostics.get_section_stats("ResourcePool").warning_count == 1


def test_workload_failure_keeps_pool(prod_cluster):
    batch = prod_cluster.resourcePool.resourcePool[-1]
    batch.vm = fakes.Raise(RuntimeError("vm property unavailable"))
    context = fakes.make_context(_session(prod_cluster), cluster="CL-Prod")

    result = collect(context)

    assert result.records[-1].name == "RP-Batch"
    assert result.records[-1].contained_workload_names == []
    assert result.warnings[0].entity == "RP-Batch"


def test_missing_cluster_is_fatal(prod_cluster):
    context = fakes.make_context(_session(prod_cluster), cluster="CL-Missing")

    with pytest.raises(ClusterNotFoundError):
        collect(context)


def test_ambiguous_cluster_is_fatal():
    first = fakes.cluster("CL-Dup")
    second = fakes.cluster("CL-Dup")
    session = fakes.build_session(clusters=[first, second])
    context = fakes.make_context(session, cluster="CL-Dup")

    with pytest.raises(AmbiguousClusterError):
        collect(context)

from .context import CollectorContext
from ..models import PermissionEntry, ResourcePoolRecord, SharesLevel
from ..results import CollectionResult, ItemWarning, Ok, partition

# The implicit root pool and the cluster services pool are never exported
RESERVED_POOL_NAMES = frozenset({"Resources", "vCLS"})

SHARES_LEVELS = {
    "low": SharesLevel.LOW,
    "normal": SharesLevel.NORMAL,
    "high": SharesLevel.HIGH,
    "custom": SharesLevel.CUSTOM,
}


def _allocation(allocation):
    if allocation is None:
        return {"level": SharesLevel.NORMAL, "shares": 0, "reservation": 0, "limit": -1, "expandable": True}
    shares = allocation.shares
    level = str(shares.level) if shares and shares.level is not None else "normal"
    expandable = allocation.expandableReservation
    limit = allocation.limit
    return {
        "level": SHARES_LEVELS.get(level.lower(), SharesLevel.CUSTOM),
        "shares": (shares.shares or 0) if shares else 0,
        "reservation": allocation.reservation or 0,
        "limit": limit if limit is not None else -1,
        "expandable": True if expandable is None else bool(expandable),
    }


def _workload_names(context: CollectorContext, pool, name: str, result: CollectionResult):
    try:
        return [vm.name for vm in context.session.list_workloads(pool)]
    except Exception as exc:
        context.diagnostics.add_warning("ResourcePool", name, f"workloads: {exc}")
        context.logger.warning("No se pudieron leer VMs del pool %s: %s", name, exc)
        result.warnings.append(ItemWarning(name, f"workloads: {exc}"))
        return []


def _permissions(context: CollectorContext, pool, name: str, result: CollectionResult):
    session = context.session
    try:
        return [
            PermissionEntry(
                principal=permission.principal,
                role=session.role_name(permission.roleId),
                propagate=bool(permission.propagate),
            )
            for permission in session.list_permissions(pool)
        ]
    except Exception as exc:
        context.diagnostics.add_warning("ResourcePool", name, f"permissions: {exc}")
        context.logger.warning("No se pudieron leer permisos del pool %s: %s", name, exc)
        result.warnings.append(ItemWarning(name, f"permissions: {exc}"))
        return []


def _pool_record(context: CollectorContext, cluster, pool, name: str, result: CollectionResult):
    context.diagnostics.add_attempt("ResourcePool")
    try:
        parent_type, parent_name = context.resolver.resolve_pool_parent(pool, cluster)
        config = pool.config
        cpu = _allocation(getattr(config, "cpuAllocation", None))
        mem = _allocation(getattr(config, "memoryAllocation", None))
    except Exception as exc:
        context.diagnostics.add_error("ResourcePool", name, exc)
        context.logger.warning("No se pudo leer el pool %s: %s", name, exc)
        return ItemWarning(name, str(exc))

    record = ResourcePoolRecord(
        name=name,
        parent_type=parent_type,
        parent_name=parent_name,
        cpu_shares_level=cpu["level"],
        cpu_shares=cpu["shares"],
        cpu_reservation_mhz=cpu["reservation"],
        cpu_limit_mhz=cpu["limit"],
        cpu_expandable_reservation=cpu["expandable"],
        mem_shares_level=mem["level"],
        mem_shares=mem["shares"],
        mem_reservation_mb=mem["reservation"],
        mem_limit_mb=mem["limit"],
        mem_expandable_reservation=mem["expandable"],
        contained_workload_names=_workload_names(context, pool, name, result),
        permissions=_permissions(context, pool, name, result),
    )
    context.diagnostics.add_success("ResourcePool")
    return Ok(record)


def collect(context: CollectorContext) -> CollectionResult:
    """Resource pools under the configured cluster.

    A missing or ambiguous cluster raises and aborts the run.
    """
    cluster_name = context.config.cluster
    session = context.session
    result = CollectionResult()

    cluster = session.resolve_cluster(cluster_name)
    items = []
    for pool in session.list_resource_pools(cluster):
        name = pool.name
        if name in RESERVED_POOL_NAMES:
            context.logger.debug("Pool reservado omitido: %s", name)
            continue
        items.append(_pool_record(context, cluster, pool, name, result))

    records, warnings = partition(items)
    result.records.extend(records)
    result.warnings.extend(warnings)
    context.logger.info(
        "Resumen pools %s: pools=%s warnings=%s", cluster_name, len(result.records), len(result.warnings)
    )
    return result

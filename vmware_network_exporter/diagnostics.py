from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pyVmomi import vim, vmodl

SECTION_ORDER = [
    "DistributedSwitch",
    "StandardSwitch",
    "PortGroup",
    "HostNetwork",
    "VmKernelAdapter",
    "ResourcePool",
]

MAX_EXAMPLES = 10


@dataclass
class SectionDiagnostics:
    attempted_count: int = 0
    success_count: int = 0
    warning_count: int = 0
    no_permission_count: int = 0
    invalid_property_count: int = 0
    not_found_count: int = 0
    other_error_count: int = 0
    examples: List[Dict[str, str]] = field(default_factory=list)

    @property
    def total_error_count(self) -> int:
        return (
            self.no_permission_count
            + self.invalid_property_count
            + self.not_found_count
            + self.other_error_count
        )


class Diagnostics:
    """Run statistics per record kind. One instance per run, never shared."""

    def __init__(self, sections: Optional[List[str]] = None) -> None:
        self._stats: Dict[str, SectionDiagnostics] = {}
        self._runtime_config: Dict[str, object] = {}
        for name in sections or SECTION_ORDER:
            self._stats[name] = SectionDiagnostics()

    def _get_stats(self, section: str) -> SectionDiagnostics:
        if section not in self._stats:
            self._stats[section] = SectionDiagnostics()
        return self._stats[section]

    def get_section_stats(self, section: str) -> SectionDiagnostics:
        return self._get_stats(section)

    @staticmethod
    def classify_exception(exc: Exception) -> str:
        if isinstance(exc, vim.fault.NoPermission):
            return "no_permission"
        invalid_cls = getattr(vim.fault, "InvalidProperty", None)
        if invalid_cls and isinstance(exc, invalid_cls):
            return "invalid_property"
        message = str(exc).lower()
        if "invalidproperty" in message or "invalid property" in message:
            return "invalid_property"
        not_found = [vmodl.fault.ManagedObjectNotFound]
        if hasattr(vim.fault, "NotFound"):
            not_found.append(vim.fault.NotFound)
        if isinstance(exc, tuple(not_found)):
            return "not_found"
        return "other_error"

    def add_attempt(self, section: str) -> None:
        self._get_stats(section).attempted_count += 1

    def add_success(self, section: str) -> None:
        self._get_stats(section).success_count += 1

    def add_warning(self, section: str, entity: str, reason: str) -> None:
        stats = self._get_stats(section)
        stats.warning_count += 1
        self._add_example(stats, entity, "warning", reason)

    def add_error(self, section: str, entity: str, exc: Exception) -> str:
        error_type = self.classify_exception(exc)
        stats = self._get_stats(section)

        if error_type == "no_permission":
            stats.no_permission_count += 1
        elif error_type == "invalid_property":
            stats.invalid_property_count += 1
        elif error_type == "not_found":
            stats.not_found_count += 1
        else:
            stats.other_error_count += 1

        self._add_example(stats, entity, error_type, str(exc))
        return error_type

    @staticmethod
    def _add_example(stats: SectionDiagnostics, entity: str, error_type: str, message: str) -> None:
        if len(stats.examples) < MAX_EXAMPLES:
            stats.examples.append(
                {
                    "entity": str(entity),
                    "error_type": error_type,
                    "message": message,
                }
            )

    def sections(self) -> List[str]:
        return list(self._stats)

    def set_runtime_config(self, runtime_config: Dict[str, object]) -> None:
        self._runtime_config = dict(runtime_config)

    def to_dict(self) -> Dict[str, object]:
        serialized: Dict[str, Dict[str, object]] = {}
        for section, stats in self._stats.items():
            serialized[section] = {
                "attempted_count": stats.attempted_count,
                "success_count": stats.success_count,
                "warning_count": stats.warning_count,
                "no_permission_count": stats.no_permission_count,
                "invalid_property_count": stats.invalid_property_count,
                "not_found_count": stats.not_found_count,
                "other_error_count": stats.other_error_count,
                "examples": list(stats.examples),
            }
        return {"runtime_config": dict(self._runtime_config), **serialized}

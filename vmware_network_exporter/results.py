from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, List, Tuple, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    record: T


@dataclass(frozen=True)
class ItemWarning:
    entity: str
    reason: str

    def __str__(self) -> str:
        return f"{self.entity}: {self.reason}"


ItemResult = Union[Ok[T], ItemWarning]


def partition(results: Iterable[Union[Ok[Any], ItemWarning]]) -> Tuple[List[Any], List[ItemWarning]]:
    records: List[Any] = []
    warnings: List[ItemWarning] = []
    for result in results:
        if isinstance(result, Ok):
            records.append(result.record)
        elif isinstance(result, ItemWarning):
            warnings.append(result)
        else:
            raise TypeError(f"Resultado inesperado: {result!r}")
    return records, warnings


@dataclass
class CollectionResult:
    records: List[Any] = field(default_factory=list)
    warnings: List[ItemWarning] = field(default_factory=list)

    def extend(self, other: "CollectionResult") -> None:
        self.records.extend(other.records)
        self.warnings.extend(other.warnings)

from dataclasses import dataclass
from typing import Any

from ..resolvers import InventoryResolver


@dataclass
class CollectorContext:
    session: Any
    config: Any
    logger: Any
    diagnostics: Any
    resolver: InventoryResolver = None

    def __post_init__(self) -> None:
        if self.resolver is None:
            self.resolver = InventoryResolver(self.session, logger=self.logger)

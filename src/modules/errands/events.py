"""Domain events for errands, broadcast on ``errands:<errand_id>``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from shared.domain.events import DomainEvent, StatusChanged


@dataclass(frozen=True)
class ErrandCreated(DomainEvent):
    topic: ClassVar[str] = "errands"

    errand_number: str = ""
    total_price: str = "0"


@dataclass(frozen=True)
class ErrandAssigned(DomainEvent):
    topic: ClassVar[str] = "errands"

    runner_id: str = ""


@dataclass(frozen=True)
class ErrandStatusChanged(StatusChanged):
    topic: ClassVar[str] = "errands"


@dataclass(frozen=True)
class ErrandCancelled(StatusChanged):
    topic: ClassVar[str] = "errands"

    reason: str = ""

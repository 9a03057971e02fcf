from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, Iterable, Optional

from vitrine.configuration.settings import Configuration


class StatusOutcome(str, Enum):
    PAID = "paid"
    CANCELED = "canceled"
    PENDING = "pending"


@dataclass(frozen=True)
class StatusVocabulary:
    """Sinônimos (texto livre do gateway) que significam pago ou cancelado."""

    paid: FrozenSet[str] = field(default_factory=frozenset)
    canceled: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_words(cls, paid: Iterable[str], canceled: Iterable[str]) -> "StatusVocabulary":
        return cls(
            paid=frozenset(word.strip().lower() for word in paid),
            canceled=frozenset(word.strip().lower() for word in canceled),
        )

    @classmethod
    def from_configuration(cls, configuration: Optional[Configuration] = None) -> "StatusVocabulary":
        configuration = configuration or Configuration()
        return cls.from_words(configuration.pix_paid_statuses, configuration.pix_canceled_statuses)

    def classify(self, status: Optional[Any]) -> StatusOutcome:
        # Corpo malformado pode trazer número ou objeto no lugar do texto
        normalized = str(status).strip().lower() if status is not None else ""
        if normalized in self.paid:
            return StatusOutcome.PAID
        if normalized in self.canceled:
            return StatusOutcome.CANCELED
        return StatusOutcome.PENDING

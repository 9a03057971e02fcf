"""Colaboradores de interface injetados no fluxo de checkout."""
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol


@dataclass(frozen=True)
class Toast:
    title: str
    description: str
    variant: str = "default"


class Notifier(Protocol):
    def toast(self, title: str, description: str, variant: str = "default") -> None:
        ...


class Navigator(Protocol):
    def navigate(self, location: str) -> None:
        ...


class LoggingNotifier:
    """Notificações transitórias registradas em log (uso fora de uma UI)."""

    def __init__(self):
        self.history: List[Toast] = []

    def toast(self, title: str, description: str, variant: str = "default") -> None:
        self.history.append(Toast(title, description, variant))
        level = logging.WARNING if variant == "destructive" else logging.INFO
        logging.log(level, f"CHECKOUT >>> {title}: {description}")


class LocationNavigator:
    def __init__(self, location: str = "/"):
        self.location = location

    def navigate(self, location: str) -> None:
        logging.info(f"CHECKOUT >>> Navegando para {location}")
        self.location = location

    @property
    def last(self) -> Optional[str]:
        return self.location

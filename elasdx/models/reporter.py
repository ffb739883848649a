from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List

import click


class Category(Enum):
    TEMPLATE = "INDEX TEMPLATE"
    INDEX = "INDEX"
    DOCUMENTS = "DOCUMENTS"
    ALIAS = "ALIAS"
    SETTINGS = "SETTINGS"


class Action(Enum):
    ADDED = ("Added", "green")
    CREATED = ("Created", "green")
    EXISTS = ("Exists", "green")
    UPDATED = ("Updated", "green")
    REMOVED = ("Removed", "red")
    DELETED = ("Deleted", "red")
    REINDEXED = ("Reindexed", "yellow")

    def __init__(self, label: str, color: str):
        self.label = label
        self.color = color


CATEGORY_WIDTH = 16
ACTION_WIDTH = 11


@dataclass(frozen=True)
class Event:
    category: Category
    action: Action
    message: str

    def __str__(self) -> str:
        return f"{self.category.value.ljust(CATEGORY_WIDTH)} {self.action.label.ljust(ACTION_WIDTH)} {self.message}"


class Reporter(ABC):
    """Receives one event per administrative action performed against the cluster."""

    @abstractmethod
    def record(self, category: Category, action: Action, message: str) -> None:
        raise NotImplementedError


class ConsoleReporter(Reporter):
    def __init__(self, color: bool = True) -> None:
        self.color = color

    def record(self, category: Category, action: Action, message: str) -> None:
        action_label = action.label.ljust(ACTION_WIDTH)
        if self.color:
            action_label = click.style(action_label, fg=action.color)
        click.echo(f"{category.value.ljust(CATEGORY_WIDTH)} {action_label} {message}", color=self.color)


@dataclass
class RecordingReporter(Reporter):
    events: List[Event] = field(default_factory=list)

    def record(self, category: Category, action: Action, message: str) -> None:
        self.events.append(Event(category, action, message))

    def lines(self) -> List[str]:
        return [str(event) for event in self.events]

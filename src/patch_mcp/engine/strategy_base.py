"""Base strategy architecture for patch application.

Strategies implement one patch type each. They are:
- Stateless: a single instance serves every operation of its type
- Pure: they transform text and never touch the filesystem
- Explicit: everything they need arrives through ``StrategyContext``

A strategy returns a ``StrategyOutcome`` for edits it could evaluate
(rejected edits become conflicts), and raises ``PatchError`` when the
operation itself is unusable (missing fields, unparseable diff).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import ClassVar

from .models import PatchOperation, WhitespaceConfig
from .patch_config import PatchSettings


class ProtectedContentPolicy:
    """Decides which lines a line patch must leave alone.

    By default a line is protected when it contains any of the configured
    markers. A custom predicate replaces marker matching entirely.

    Example:
        policy = ProtectedContentPolicy(predicate=lambda line: line.startswith("#!"))
    """

    def __init__(
        self,
        markers: Iterable[str] = ("TODO", "IMPORTANT"),
        predicate: Callable[[str], bool] | None = None,
    ):
        self.markers = tuple(markers)
        self._predicate = predicate

    @classmethod
    def from_settings(cls, settings: PatchSettings) -> ProtectedContentPolicy:
        return cls(markers=settings.protected_markers)

    def is_protected(self, line: str) -> bool:
        if self._predicate is not None:
            return self._predicate(line)
        return any(marker in line for marker in self.markers)

    def can_delete(self, line: str) -> bool:
        return not self.is_protected(line)

    def can_replace(self, original: str, modified: str, max_growth_factor: float = 2.0) -> bool:
        """Replacement is allowed for unprotected lines that do not grow too much."""
        if self.is_protected(original):
            return False
        return len(modified) <= len(original) * max_growth_factor


@dataclass
class StrategyContext:
    """Per-operation inputs shared by all strategies.

    Attributes:
        settings: Engine settings (thresholds and limits)
        whitespace: Effective whitespace config for this operation
        protection: Protected-content policy for line patches
        newline: Separator the normalized content was joined with
    """

    settings: PatchSettings
    whitespace: WhitespaceConfig
    protection: ProtectedContentPolicy
    newline: str = "\n"


@dataclass
class StrategyOutcome:
    """New content, number of accepted edits and conflict messages."""

    content: str
    changes_applied: int = 0
    conflicts: list[str] = field(default_factory=list)


class PatchStrategy(ABC):
    """Base class for patch strategies.

    Subclasses set ``type_name`` to the ``PatchOperation.type`` they handle
    and implement ``apply``.

    Example:
        class UpperCaseStrategy(PatchStrategy):
            type_name = "upper"

            def apply(self, content, operation, context):
                return StrategyOutcome(content=content.upper(), changes_applied=1)
    """

    type_name: ClassVar[str]

    @abstractmethod
    def apply(
        self, content: str, operation: PatchOperation, context: StrategyContext
    ) -> StrategyOutcome:
        """Apply ``operation`` to normalized ``content``.

        Args:
            content: Normalized file content
            operation: The patch request
            context: Settings, whitespace config and protection policy

        Returns:
            StrategyOutcome with new content, change count and conflicts

        Raises:
            PatchError: If the operation cannot be evaluated at all
        """


class StrategyRegistry:
    """
    Registry of patch strategies.

    Maps patch type names to strategy instances.
    """

    def __init__(self) -> None:
        self._strategies: dict[str, PatchStrategy] = {}

    def register(self, strategy: PatchStrategy) -> None:
        """Register strategy using strategy.type_name as key."""
        if strategy.type_name in self._strategies:
            raise ValueError(f"Strategy already registered: {strategy.type_name}")
        self._strategies[strategy.type_name] = strategy

    def get(self, type_name: str) -> PatchStrategy:
        """Get strategy by type name."""
        if type_name not in self._strategies:
            available = list(self._strategies.keys())
            raise ValueError(f"Unknown patch type: {type_name}. Available: {available}")
        return self._strategies[type_name]

    def list_types(self) -> list[str]:
        return list(self._strategies.keys())

    def has(self, type_name: str) -> bool:
        return type_name in self._strategies


def create_default_registry() -> StrategyRegistry:
    """Create a StrategyRegistry with the four built-in strategies.

    Each engine gets its own registry, so tests can register extra strategies
    without affecting other instances.
    """
    from .strategies import (
        BlockStrategy,
        CompleteStrategy,
        DiffStrategy,
        LineStrategy,
    )

    registry = StrategyRegistry()
    registry.register(LineStrategy())
    registry.register(BlockStrategy())
    registry.register(DiffStrategy())
    registry.register(CompleteStrategy())
    return registry

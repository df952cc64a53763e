"""
Target registry.

Ordered list of target identifiers, each carrying an enabled flag. The order
is the insertion order used by the default presentation view.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from pickllm.core.errors import RegistryError
from pickllm.core.models import DEFAULT_TARGETS, Target


class TargetRegistry:
    """
    Ordered, id-unique collection of targets.

    Example:
        registry = TargetRegistry.from_ids(["gpt-4o", "gpt-4-turbo"])
        registry.toggle("gpt-4-turbo", enabled=False)
        registry.enabled_ids()  # ["gpt-4o"]
    """

    def __init__(self, targets: Iterable[Target] = ()):
        self._targets: dict[str, Target] = {}
        for target in targets:
            if target.id in self._targets:
                raise RegistryError.duplicate(target.id)
            self._targets[target.id] = target

    @classmethod
    def from_ids(cls, ids: Iterable[str]) -> "TargetRegistry":
        """Create a registry with every id enabled."""
        return cls(Target(id=target_id) for target_id in ids)

    @classmethod
    def default(cls) -> "TargetRegistry":
        return cls.from_ids(DEFAULT_TARGETS)

    def __contains__(self, target_id: object) -> bool:
        return target_id in self._targets

    def __iter__(self) -> Iterator[Target]:
        return iter(list(self._targets.values()))

    def __len__(self) -> int:
        return len(self._targets)

    def get(self, target_id: str) -> Target:
        try:
            return self._targets[target_id]
        except KeyError:
            raise RegistryError.unknown(target_id) from None

    @property
    def ids(self) -> list[str]:
        """All target ids in insertion order."""
        return list(self._targets)

    def enabled_ids(self) -> list[str]:
        """Ids of enabled targets, in insertion order."""
        return [t.id for t in self._targets.values() if t.enabled]

    def toggle(self, target_id: str, enabled: bool) -> Target:
        """Set the enabled flag of an existing target."""
        target = self.get(target_id)
        updated = target.model_copy(update={"enabled": enabled})
        self._targets[target_id] = updated
        return updated

    def replace(self, ids: Iterable[str]) -> list[str]:
        """
        Replace the target list with ``ids`` in the given order.

        Targets that survive keep their enabled flag; new targets start
        enabled. Returns the ids that were removed.
        """
        new_ids = [target_id.strip() for target_id in ids]
        seen: set[str] = set()
        for target_id in new_ids:
            if not target_id:
                raise RegistryError.empty_id()
            if target_id in seen:
                raise RegistryError.duplicate(target_id)
            seen.add(target_id)

        removed = [target_id for target_id in self._targets if target_id not in seen]
        self._targets = {
            target_id: self._targets.get(target_id) or Target(id=target_id)
            for target_id in new_ids
        }
        return removed

# econbot/infra/worker_tags.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from econbot.consts import RESOURCE_ORDER, ResourceType, Role, Subrole


@dataclass
class WorkerTags:
    role: Role
    subrole: Optional[Subrole] = None
    gather_type: Optional[ResourceType] = None

    def validate(self) -> None:
        if not isinstance(self.role, Role):
            raise TypeError(f"WorkerTags.role must be Role, got {type(self.role)!r}")
        if self.subrole is not None and not isinstance(self.subrole, Subrole):
            raise TypeError(f"WorkerTags.subrole must be Subrole, got {type(self.subrole)!r}")
        if self.subrole is Subrole.GATHERER:
            if not isinstance(self.gather_type, ResourceType):
                raise ValueError("WorkerTags.gather_type is required for gatherers")
        elif self.gather_type is not None:
            raise ValueError("WorkerTags.gather_type is only valid for gatherers")


class WorkerRegistry:
    """
    Role/subrole tags per entity id, with a reverse index by role.

    Only the workforce allocator writes here. Entries disappear when the
    entity leaves the world (forget/prune).
    """

    def __init__(self):
        self._tags: Dict[int, WorkerTags] = {}       # entity id -> tags
        self._by_role: Dict[Role, Set[int]] = {}     # role -> {entity id}

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, entity_id: int) -> bool:
        return int(entity_id) in self._tags

    # ---------------- Queries ----------------

    def tags_of(self, entity_id: int) -> Optional[WorkerTags]:
        return self._tags.get(int(entity_id))

    def role_of(self, entity_id: int) -> Optional[Role]:
        tags = self._tags.get(int(entity_id))
        return tags.role if tags else None

    def subrole_of(self, entity_id: int) -> Optional[Subrole]:
        tags = self._tags.get(int(entity_id))
        return tags.subrole if tags else None

    def ids_with_role(self, role: Role) -> List[int]:
        return sorted(self._by_role.get(role, set()))

    def count_role(self, role: Role) -> int:
        return len(self._by_role.get(role, set()))

    def count_subrole(self, subrole: Subrole, *, role: Role = Role.WORKER) -> int:
        return sum(1 for i in self._by_role.get(role, set()) if self._tags[i].subrole is subrole)

    def gatherer_counts(self, types: Iterable[ResourceType] = RESOURCE_ORDER) -> Dict[ResourceType, int]:
        counts = {t: 0 for t in types}
        for i in self._by_role.get(Role.WORKER, set()):
            tags = self._tags[i]
            if tags.subrole is Subrole.GATHERER and tags.gather_type in counts:
                counts[tags.gather_type] += 1
        return counts

    # ---------------- Mutations ----------------

    def assign_role(self, entity_id: int, role: Role) -> bool:
        """One-time classification. Returns False if the entity already has a role."""
        entity_id = int(entity_id)
        if entity_id in self._tags:
            return False
        tags = WorkerTags(role=role)
        tags.validate()
        self._tags[entity_id] = tags
        self._by_role.setdefault(role, set()).add(entity_id)
        return True

    def set_subrole(
        self,
        entity_id: int,
        subrole: Optional[Subrole],
        *,
        gather_type: Optional[ResourceType] = None,
    ) -> None:
        tags = self._tags.get(int(entity_id))
        if tags is None:
            raise KeyError(f"entity {entity_id} has no role yet")
        new = WorkerTags(role=tags.role, subrole=subrole, gather_type=gather_type)
        new.validate()
        tags.subrole = new.subrole
        tags.gather_type = new.gather_type

    def forget(self, entity_id: int) -> None:
        tags = self._tags.pop(int(entity_id), None)
        if tags is None:
            return
        s = self._by_role.get(tags.role)
        if s:
            s.discard(int(entity_id))
            if not s:
                del self._by_role[tags.role]

    def prune(self, live_ids: Iterable[int]) -> List[int]:
        """Drops every entry whose entity is no longer in the world."""
        live = {int(i) for i in live_ids}
        gone = sorted(i for i in self._tags if i not in live)
        for i in gone:
            self.forget(i)
        return gone

    def snapshot(self) -> dict:
        by_subrole: Dict[str, int] = {}
        for tags in self._tags.values():
            key = tags.subrole.value if tags.subrole else "unset"
            by_subrole[key] = by_subrole.get(key, 0) + 1
        return {
            "total": len(self._tags),
            "by_role": {role.value: len(ids) for role, ids in sorted(self._by_role.items(), key=lambda kv: kv[0].value)},
            "by_subrole": dict(sorted(by_subrole.items())),
        }

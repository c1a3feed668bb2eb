"""Destination conflict detection and resolution."""

from __future__ import annotations

import logging
import os
import threading
from collections import defaultdict, deque
from pathlib import Path
from typing import Iterable, Optional

from .models import ConflictPolicy, RenameAction, RenameMapping, RenamePlan, SkippedMapping

LOGGER = logging.getLogger(__name__)

# Serializes destination validation and filesystem mutation across threads.
FILESYSTEM_LOCK = threading.RLock()


class ConflictError(Exception):
    """Raised by the ``fail`` policy when any destination conflicts.

    Attributes:
        conflicts: One message per conflicting mapping.
    """

    def __init__(self, message: str, conflicts: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.conflicts = list(conflicts)


def path_key(path: Path) -> str:
    """Return the comparison key for a filesystem path."""
    return os.path.normcase(os.path.abspath(path))


def is_occupied(path: Path) -> bool:
    """Return True when ``path`` exists, including dangling symlinks."""
    return path.exists() or path.is_symlink()


def numbered_candidate(path: Path, counter: int) -> Path:
    """Return ``path`` with a ``-N`` suffix before the extension."""
    return path.with_name(f"{path.stem}-{counter}{path.suffix}")


def _same_file(left: Path, right: Path) -> bool:
    try:
        return os.path.samefile(left, right)
    except OSError:
        return False


def is_case_rename(source: Path, destination: Path) -> bool:
    """Return True when ``destination`` is ``source`` spelled with a different case.

    On a case-insensitive filesystem such a destination resolves to the source
    itself, so it is not occupied by another file.
    """
    if os.path.abspath(source).casefold() != os.path.abspath(destination).casefold():
        return False
    return _same_file(source, destination)


class ConflictResolver:
    """Validate a batch of mappings and apply a conflict policy.

    Every mapping is checked before anything touches the filesystem. A destination
    conflicts when another mapping already claimed it or when a file outside the
    batch occupies it. Files that an earlier move in the same batch vacates are not
    conflicts; the resulting plan orders such chains so the vacating move runs
    first. Circular moves (``a -> b``, ``b -> a``) are treated as conflicts.
    """

    def __init__(
        self,
        policy: ConflictPolicy | str = ConflictPolicy.SKIP,
        *,
        max_index: int = 999,
    ) -> None:
        self.policy = ConflictPolicy(policy)
        self.max_index = max_index

    def resolve(self, mappings: Iterable[RenameMapping]) -> RenamePlan:
        """Return a plan whose mappings have unique, available destinations.

        Args:
            mappings: Proposed mappings in any order.

        Returns:
            RenamePlan: Accepted mappings in execution order plus skipped ones.

        Raises:
            ConflictError: If the policy is ``fail`` and any mapping conflicts.
        """
        with FILESYSTEM_LOCK:
            return self._resolve(list(mappings))

    # ------------------------------------------------------------------ #
    # Resolution passes                                                  #
    # ------------------------------------------------------------------ #

    def _resolve(self, mappings: list[RenameMapping]) -> RenamePlan:
        plan = RenamePlan()
        candidates = self._prepare(mappings, plan)

        assumed = {
            path_key(mapping.source)
            for mapping in candidates
            if mapping.action is RenameAction.MOVE
        }
        assumed -= self._cyclic_sources(candidates)

        # A move that ends up skipped no longer vacates its source, which can
        # turn a dependent mapping into a conflict; iterate until stable.
        while True:
            accepted, skipped, conflicts = self._assign(candidates, assumed)
            vacated = {
                path_key(mapping.source)
                for mapping in accepted
                if mapping.action is RenameAction.MOVE
            } & assumed
            if vacated == assumed:
                break
            assumed = vacated

        if self.policy is ConflictPolicy.FAIL and conflicts:
            raise ConflictError(
                f"{len(conflicts)} destination conflict(s) with policy 'fail'; "
                "nothing was renamed.",
                conflicts,
            )

        ordered, circular = self._order(accepted)
        plan.mappings = ordered
        plan.skipped.extend(skipped)
        plan.skipped.extend(circular)
        if conflicts:
            plan.notes.append(
                f"Resolved {len(conflicts)} conflict(s) using '{self.policy.value}'."
            )
        LOGGER.debug(
            "Conflict resolution accepted %d mapping(s), skipped %d",
            len(plan.mappings),
            len(plan.skipped),
        )
        return plan

    def _prepare(self, mappings: list[RenameMapping], plan: RenamePlan) -> list[RenameMapping]:
        candidates: list[RenameMapping] = []
        sources: set[str] = set()
        ordered = sorted(
            mappings, key=lambda item: (path_key(item.source), path_key(item.destination))
        )
        for mapping in ordered:
            mapping = mapping.model_copy(
                update={
                    "source": Path(os.path.abspath(mapping.source)),
                    "destination": Path(os.path.abspath(mapping.destination)),
                }
            )
            source_key = path_key(mapping.source)
            if source_key in sources:
                plan.skipped.append(
                    SkippedMapping(mapping=mapping, reason="source already mapped in this batch")
                )
                continue
            sources.add(source_key)
            if not is_occupied(mapping.source):
                plan.skipped.append(
                    SkippedMapping(mapping=mapping, reason="source file is missing")
                )
            elif source_key == path_key(mapping.destination):
                plan.skipped.append(
                    SkippedMapping(mapping=mapping, reason="file is already at its destination")
                )
            else:
                candidates.append(mapping)
        return candidates

    def _cyclic_sources(self, candidates: list[RenameMapping]) -> set[str]:
        by_source = {
            path_key(mapping.source): mapping
            for mapping in candidates
            if mapping.action is RenameAction.MOVE
        }
        cyclic: set[str] = set()
        for start in by_source:
            chain: list[str] = []
            current = start
            while current in by_source and current not in chain:
                chain.append(current)
                current = path_key(by_source[current].destination)
            if current in chain:
                cyclic.update(chain[chain.index(current) :])
        return cyclic

    def _assign(
        self,
        candidates: list[RenameMapping],
        assumed: set[str],
    ) -> tuple[list[RenameMapping], list[SkippedMapping], list[str]]:
        claimed: dict[str, RenameMapping] = {}
        batch_sources = {path_key(mapping.source) for mapping in candidates}
        accepted: list[RenameMapping] = []
        skipped: list[SkippedMapping] = []
        conflicts: list[str] = []

        for mapping in candidates:
            reason = self._conflict_reason(mapping, claimed, assumed)
            if reason is None:
                claimed[path_key(mapping.destination)] = mapping
                accepted.append(mapping)
                continue

            conflicts.append(f"{mapping.source} -> {mapping.destination}: {reason}")
            outcome = self._apply_policy(mapping, reason, claimed, batch_sources)
            if isinstance(outcome, SkippedMapping):
                skipped.append(outcome)
            else:
                claimed[path_key(outcome.destination)] = outcome
                accepted.append(outcome)
        return accepted, skipped, conflicts

    def _conflict_reason(
        self,
        mapping: RenameMapping,
        claimed: dict[str, RenameMapping],
        assumed: set[str],
    ) -> Optional[str]:
        destination_key = path_key(mapping.destination)
        owner = claimed.get(destination_key)
        if owner is not None:
            return f"destination already planned for {owner.source}"
        if destination_key in assumed:
            return None
        if is_occupied(mapping.destination):
            if is_case_rename(mapping.source, mapping.destination):
                return None
            if _same_file(mapping.source, mapping.destination):
                return "destination is another link to the source file"
            return "destination already exists"
        return None

    def _apply_policy(
        self,
        mapping: RenameMapping,
        reason: str,
        claimed: dict[str, RenameMapping],
        batch_sources: set[str],
    ) -> RenameMapping | SkippedMapping:
        if self.policy in (ConflictPolicy.SKIP, ConflictPolicy.FAIL):
            return SkippedMapping(mapping=mapping, reason=reason)

        destination = mapping.destination
        destination_key = path_key(destination)

        if self.policy is ConflictPolicy.OVERWRITE:
            if destination_key in claimed:
                return SkippedMapping(mapping=mapping, reason=reason)
            if destination_key in batch_sources:
                return SkippedMapping(
                    mapping=mapping, reason=f"{reason}; it is a source in this batch"
                )
            if destination.is_dir() and not destination.is_symlink():
                return SkippedMapping(mapping=mapping, reason=f"{reason}; it is a directory")
            return mapping.model_copy(
                update={
                    "overwrite": True,
                    "conflict_applied": True,
                    "note": f"Overwrites existing {destination}.",
                }
            )

        for counter in range(1, self.max_index + 1):
            candidate = numbered_candidate(destination, counter)
            candidate_key = path_key(candidate)
            if candidate_key in claimed or candidate_key in batch_sources:
                continue
            if is_occupied(candidate):
                continue
            return mapping.model_copy(
                update={
                    "destination": candidate,
                    "conflict_applied": True,
                    "note": (
                        f"Resolved conflict for {mapping.source} -> {candidate} "
                        "using 'append_number'."
                    ),
                }
            )
        return SkippedMapping(mapping=mapping, reason=f"{reason}; no free numbered name")

    def _order(
        self, accepted: list[RenameMapping]
    ) -> tuple[list[RenameMapping], list[SkippedMapping]]:
        move_index = {
            path_key(mapping.source): index
            for index, mapping in enumerate(accepted)
            if mapping.action is RenameAction.MOVE
        }
        successors: dict[int, list[int]] = defaultdict(list)
        pending = [0] * len(accepted)
        for index, mapping in enumerate(accepted):
            vacating = move_index.get(path_key(mapping.destination))
            if vacating is not None and vacating != index:
                successors[vacating].append(index)
                pending[index] += 1

        queue = deque(index for index, count in enumerate(pending) if count == 0)
        ordered: list[int] = []
        while queue:
            index = queue.popleft()
            ordered.append(index)
            for follower in successors[index]:
                pending[follower] -= 1
                if pending[follower] == 0:
                    queue.append(follower)

        placed = set(ordered)
        circular = [
            SkippedMapping(mapping=accepted[index], reason="circular rename chain")
            for index in range(len(accepted))
            if index not in placed
        ]
        return [accepted[index] for index in ordered], circular


__all__ = [
    "ConflictResolver",
    "ConflictError",
    "FILESYSTEM_LOCK",
    "path_key",
    "is_occupied",
    "is_case_rename",
    "numbered_candidate",
]

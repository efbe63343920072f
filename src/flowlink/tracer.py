"""
Debug tracing for the change tracker.

When a ``RecomputeTrace`` is attached to a registry, every recomputation pass
leaves a ``PassRecord`` describing what happened to each connection it
touched. This is primarily useful for:
1. Debugging routing updates (why a connector did or did not move)
2. Writing targeted tests (asserting on removals, skips and writes)

Usage:
    >>> trace = RecomputeTrace()
    >>> registry = ConnectionRegistry(scene, trace=trace)
    >>> scene.move("a", 100, 0)
    >>> print(trace.summary())
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class PassRecord:
    """
    Outcome of one recomputation pass.

    Attributes:
        number: 1-based pass counter.
        trigger_ids: Scene ids named by the notification batch.
        recomputed: Connections whose visuals were replaced.
        unchanged: Connections recomputed with identical geometry (no write).
        skipped: Connections skipped because an endpoint was missing.
        removed: Connections removed by this pass.
        errors: Connection id -> error message for isolated failures.
    """

    number: int
    trigger_ids: List[str] = field(default_factory=list)
    recomputed: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def attempted(self) -> List[str]:
        """Every connection the pass tried to recompute."""
        return self.recomputed + self.unchanged + self.skipped + list(self.errors)

    def __str__(self) -> str:
        lines = [f"=== Pass {self.number} ==="]
        lines.append(f"  triggers: {', '.join(self.trigger_ids) or '-'}")
        for label in ("recomputed", "unchanged", "skipped", "removed"):
            ids = getattr(self, label)
            if ids:
                lines.append(f"  {label}: {', '.join(ids)}")
        for conn_id, message in self.errors.items():
            lines.append(f"  error {conn_id}: {message}")
        return "\n".join(lines)


@dataclass
class RecomputeTrace:
    """Ordered record of recomputation passes."""

    passes: List[PassRecord] = field(default_factory=list)

    def start_pass(self, trigger_ids: List[str]) -> PassRecord:
        record = PassRecord(number=len(self.passes) + 1, trigger_ids=list(trigger_ids))
        self.passes.append(record)
        return record

    def get_pass(self, number: int) -> Optional[PassRecord]:
        for record in self.passes:
            if record.number == number:
                return record
        return None

    def removals_of(self, connection_id: str) -> int:
        """How many passes removed the given connection."""
        return sum(1 for p in self.passes if connection_id in p.removed)

    def attempts_for(self, connection_id: str) -> int:
        """How many passes tried to recompute the given connection."""
        return sum(1 for p in self.passes if connection_id in p.attempted)

    def clear(self) -> None:
        self.passes.clear()

    def summary(self) -> str:
        lines = [
            "=" * 60,
            "RECOMPUTE TRACE SUMMARY",
            "=" * 60,
            "",
            f"Passes: {len(self.passes)}",
            f"Lines replaced: {sum(len(p.recomputed) for p in self.passes)}",
            f"Unchanged: {sum(len(p.unchanged) for p in self.passes)}",
            f"Skipped: {sum(len(p.skipped) for p in self.passes)}",
            f"Removed: {sum(len(p.removed) for p in self.passes)}",
            f"Errors: {sum(len(p.errors) for p in self.passes)}",
        ]
        return "\n".join(lines)

    def dump(self) -> str:
        lines = [self.summary(), ""]
        lines.extend(str(record) for record in self.passes)
        return "\n".join(lines)

    def dump_to_file(self, filename: str) -> None:
        with open(filename, "w", encoding="utf-8") as f:
            f.write(self.dump())

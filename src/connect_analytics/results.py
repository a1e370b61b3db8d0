"""Per-table outcome tracking for batch operations."""

from dataclasses import dataclass, field
from typing import List


@dataclass
class BatchResult:
    """Outcome of running one operation over a list of tables."""

    operation: str
    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed) + len(self.skipped)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    def record(self, name: str, ok: bool) -> None:
        (self.succeeded if ok else self.failed).append(name)

    def merge(self, other: "BatchResult") -> "BatchResult":
        """Combine two results into a new one named after this operation."""
        return BatchResult(
            operation=self.operation,
            succeeded=self.succeeded + other.succeeded,
            failed=self.failed + other.failed,
            skipped=self.skipped + other.skipped,
        )

    def to_dict(self) -> dict:
        return {
            'operation': self.operation,
            'succeeded': len(self.succeeded),
            'failed': len(self.failed),
            'skipped': len(self.skipped),
            'failed_items': list(self.failed),
        }

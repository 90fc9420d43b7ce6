"""
Per-item results for batch operations.
A batch never raises for an individual target; each target gets its own outcome.
"""
from dataclasses import dataclass, field
from typing import List

RESULT_ALL_APPLIED = "all_applied"
RESULT_PARTIAL = "partial"
RESULT_NONE_APPLIED = "none_applied"


@dataclass
class BulkOutcome:
    target_id: int
    ok: bool
    code: str = "ok"
    detail: str = ""

    def as_dict(self):
        return {"id": self.target_id, "ok": self.ok, "code": self.code, "detail": self.detail}


@dataclass
class BulkResult:
    outcomes: List[BulkOutcome] = field(default_factory=list)

    def succeeded(self, target_id):
        self.outcomes.append(BulkOutcome(target_id=target_id, ok=True))

    def failed(self, target_id, code, detail):
        self.outcomes.append(BulkOutcome(target_id=target_id, ok=False, code=code, detail=str(detail)))

    @property
    def applied(self):
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failures(self):
        return [o for o in self.outcomes if not o.ok]

    @property
    def status(self):
        if self.applied == len(self.outcomes):
            return RESULT_ALL_APPLIED
        if self.applied == 0:
            return RESULT_NONE_APPLIED
        return RESULT_PARTIAL

    def as_dict(self):
        return {
            "status": self.status,
            "applied": self.applied,
            "failed": len(self.failures),
            "results": [o.as_dict() for o in self.outcomes],
        }

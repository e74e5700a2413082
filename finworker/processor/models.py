from dataclasses import dataclass
from typing import Literal

from finworker.analytics.rebuild import RebuildResult
from finworker.database.models import InsightRecord


@dataclass(frozen=True)
class ProcessOutcome:
    """What processing a job produced.

    ``skipped``: a previously succeeded job whose insight is complete.
    ``duplicate``: the same provider result under the same pipeline version
    was already stored; nothing was written.
    """

    status: Literal["processed", "skipped", "duplicate"]
    insight: InsightRecord | None = None
    rebuild: RebuildResult | None = None

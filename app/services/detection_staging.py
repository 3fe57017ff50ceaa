"""
In-memory registry of staged detection batches, keyed by batch id.

Candidates are never persisted until confirmed; a process restart drops
every unconfirmed batch, which is the intended human-in-the-loop outcome.
"""
from __future__ import annotations

import uuid
from typing import Optional

from app.core.errors import NotFoundError
from app.scoring.detection import RiskDetectionAggregator


class DetectionStaging:

    def __init__(self) -> None:
        self._batches: dict[str, RiskDetectionAggregator] = {}

    def open(self, aggregator: RiskDetectionAggregator) -> str:
        batch_id = str(uuid.uuid4())
        self._batches[batch_id] = aggregator
        return batch_id

    def get(self, batch_id: str) -> RiskDetectionAggregator:
        aggregator = self._batches.get(batch_id)
        if aggregator is None:
            raise NotFoundError(f"Detection batch {batch_id} not found")
        return aggregator

    def close(self, batch_id: str) -> Optional[RiskDetectionAggregator]:
        return self._batches.pop(batch_id, None)


detection_staging = DetectionStaging()


def get_detection_staging() -> DetectionStaging:
    return detection_staging

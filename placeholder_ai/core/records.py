"""Generation record data contracts for `placeholder_ai.core.coordinator`.

Architectural role:
    Defines the status lifecycle and the record type that the coordinator owns
    while a generation is in flight and that the result cache owns afterwards.

State machine:
    `pending -> generating -> {completed | failed}`. Terminal states are final.
    Transitions go through the `mark_*` methods, which keep the field invariants:
    `image_url` is set iff completed, `error` iff failed, `completed_at` iff
    terminal.

Serialization:
    `to_payload` renders the JSON body of the status endpoint. Timestamps are
    exposed as integer epoch milliseconds.
"""

from dataclasses import dataclass
from enum import Enum


class GenerationStatus(str, Enum):
    """Lifecycle states of a generation record."""
    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({GenerationStatus.COMPLETED, GenerationStatus.FAILED})


def _to_millis(seconds: float) -> int:
    return int(round(seconds * 1000))


@dataclass
class GenerationRecord:
    """One requested generation.

    Attributes:
        id: Fingerprint of (width, height, text).
        width: Requested width in pixels.
        height: Requested height in pixels.
        text: Description forwarded to the image provider.
        created_at: Enqueue time (epoch seconds).
        status: Current lifecycle state.
        image_url: Generated image URL, only when completed.
        error: Failure message, only when failed.
        completed_at: Terminal transition time (epoch seconds).
    """

    id: str
    width: int
    height: int
    text: str
    created_at: float
    status: GenerationStatus = GenerationStatus.PENDING
    image_url: str | None = None
    error: str | None = None
    completed_at: float | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def processing_time(self) -> float | None:
        """Seconds between enqueue and terminal transition, if terminal."""
        if self.completed_at is None:
            return None
        return self.completed_at - self.created_at

    def _require(self, expected: GenerationStatus, target: GenerationStatus) -> None:
        if self.status is not expected:
            raise ValueError(
                f"Illegal transition for {self.id}: {self.status.value} -> {target.value}"
            )

    def mark_generating(self) -> None:
        self._require(GenerationStatus.PENDING, GenerationStatus.GENERATING)
        self.status = GenerationStatus.GENERATING

    def mark_completed(self, image_url: str, at: float) -> None:
        self._require(GenerationStatus.GENERATING, GenerationStatus.COMPLETED)
        self.status = GenerationStatus.COMPLETED
        self.image_url = image_url
        self.completed_at = at

    def mark_failed(self, error: str, at: float) -> None:
        self._require(GenerationStatus.GENERATING, GenerationStatus.FAILED)
        self.status = GenerationStatus.FAILED
        self.error = error
        self.completed_at = at

    def to_payload(self) -> dict:
        """Build the status-endpoint JSON body; unset optional keys are omitted."""
        payload = {
            "id": self.id,
            "status": self.status.value,
            "width": self.width,
            "height": self.height,
            "text": self.text,
            "createdAt": _to_millis(self.created_at),
        }
        if self.image_url is not None:
            payload["imageUrl"] = self.image_url
        if self.error is not None:
            payload["error"] = self.error
        if self.completed_at is not None:
            payload["completedAt"] = _to_millis(self.completed_at)
            payload["processingTime"] = max(0, _to_millis(self.processing_time))
        return payload

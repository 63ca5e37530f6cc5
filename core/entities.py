# core/entities.py
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Segment:
    file_id: str
    index: int  # 0-based, the only ordering that matters for reassembly
    path: str
    chunk_duration: float

    @property
    def start(self) -> float:
        return self.index * self.chunk_duration


@dataclass
class SegmentTask:
    """
    One segment in flight: owned by the scheduler until it settles.
    """

    segment: Segment
    url: str  # where the synthesis service can fetch the segment
    output_path: str
    retries: int = 0


@dataclass
class RemoteTask:
    task_id: str
    status: str
    video_url: Optional[str] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class JobConfig:
    api_key: str = field(repr=False)
    image_url: str
    mode: str
    chunk_duration: float

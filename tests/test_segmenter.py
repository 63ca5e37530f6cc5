import math
import shutil
import subprocess

import pytest

from core.errors import SegmentationError
from core.reassembler import Reassembler
from core.segmenter import Segmenter, segment_filename

pytestmark = pytest.mark.anyio


class FakeSegmenter(Segmenter):
    """Segmenter with ffmpeg replaced: fixed probe result, cuts write a stub file."""

    def __init__(self, chunk_duration, duration):
        super().__init__(chunk_duration)
        self.duration = duration
        self.cuts = []

    def _probe(self, source):
        return self.duration

    def _cut(self, source, dest, start, duration):
        self.cuts.append((start, duration))
        with open(dest, "wb") as fh:
            fh.write(f"{start}".encode())


@pytest.mark.parametrize(
    "duration,chunk",
    [(130, 60), (120, 60), (59.9, 60), (0.5, 15), (61, 15), (3600, 60), (7.25, 2.5)],
)
def test_plan_covers_the_whole_source(duration, chunk):
    plan = Segmenter(chunk).plan(duration)

    assert len(plan) == math.ceil(duration / chunk)
    assert [i for i, _ in plan] == list(range(len(plan)))
    assert all(start == i * chunk for i, start in plan)
    # Last segment starts inside the source and is no longer than a chunk
    _, last_start = plan[-1]
    assert last_start < duration
    assert duration - last_start <= chunk


def test_chunk_duration_must_be_positive():
    with pytest.raises(ValueError):
        Segmenter(0)
    with pytest.raises(ValueError):
        Segmenter(-5)


async def test_split_writes_ordered_segments_and_reports_progress(tmp_path):
    segmenter = FakeSegmenter(60, duration=130)
    progress = []

    segments = await segmenter.split(
        str(tmp_path / "src.mp4"),
        str(tmp_path / "work"),
        "file-1",
        on_progress=lambda done, total: progress.append((done, total)),
    )

    assert [s.index for s in segments] == [0, 1, 2]
    assert [s.start for s in segments] == [0, 60, 120]
    assert all(s.file_id == "file-1" for s in segments)
    assert [s.path for s in segments] == [
        str(tmp_path / "work" / segment_filename(i)) for i in range(3)
    ]
    assert all((tmp_path / "work" / segment_filename(i)).exists() for i in range(3))
    assert segmenter.cuts == [(0.0, 60.0), (60.0, 60.0), (120.0, 60.0)]
    assert progress == [(1, 3), (2, 3), (3, 3)]


async def test_missing_source_is_a_segmentation_error(tmp_path):
    with pytest.raises(SegmentationError, match="Source not found"):
        await Segmenter(60).split(str(tmp_path / "nope.mp4"), str(tmp_path / "w"), "f")


@pytest.mark.skipif(shutil.which("ffmpeg") is None, reason="ffmpeg not installed")
async def test_real_split_and_merge_round_trip(tmp_path):
    source = tmp_path / "clip.mp4"
    subprocess.run(
        [
            "ffmpeg", "-y", "-loglevel", "error",
            "-f", "lavfi", "-i", "testsrc=duration=5:size=160x120:rate=10",
            "-f", "lavfi", "-i", "sine=frequency=440:duration=5",
            "-c:v", "libx264", "-pix_fmt", "yuv420p", "-c:a", "aac", "-shortest",
            str(source),
        ],
        check=True,
    )
    segmenter = Segmenter(2)

    segments = await segmenter.split(str(source), str(tmp_path / "work"), "clip")
    assert len(segments) == 3

    merged = await Reassembler().merge([s.path for s in segments], str(tmp_path / "merged.mp4"))
    assert await segmenter.probe_duration(merged) == pytest.approx(5.0, abs=0.5)

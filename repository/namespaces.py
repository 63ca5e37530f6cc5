# repository/namespaces.py
from typing import Final

ROOT: Final[str] = "segsynth"

JOBS: Final[str] = f"{ROOT}:jobs"
RESULTS: Final[str] = f"{JOBS}:results"  # per-job FileResult list

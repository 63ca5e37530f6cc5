# util/functions.py
from urllib.parse import quote


def progress_percent(processed: int, total: int) -> float:
    """
    - Percentage of processed segments, clamped to [0, 100].
    - Zero when nothing has been segmented yet (total == 0).
    """
    if total <= 0:
        return 0.0
    return max(0.0, min(100.0, processed / total * 100.0))


def is_remote(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def join_url(base: str, *parts: str) -> str:
    tail = "/".join(quote(p.strip("/")) for p in parts if p)
    return f"{base.rstrip('/')}/{tail}"

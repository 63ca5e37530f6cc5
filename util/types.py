# util/types.py
from typing import Awaitable, Callable, Literal, Optional


# Flow: narrow types shared by pipeline stages.
FileStatus = Literal["completed", "error"]

SleepFn = Callable[[float], Awaitable[None]]

# (done, total) after each unit of work finishes.
ProgressCallback = Optional[Callable[[int, int], None]]

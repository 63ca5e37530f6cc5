# core/errors.py
class PipelineError(Exception):
    """Base for every failure raised while processing a file."""


class SegmentationError(PipelineError):
    pass


class RemoteServiceError(PipelineError):
    """A failed exchange with the synthesis service; carries the HTTP status when there was one."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SubmissionError(RemoteServiceError):
    def __init__(self, status_code: int | None, body: str = "") -> None:
        label = status_code if status_code is not None else "no response"
        super().__init__(f"Task submission failed ({label}): {body}", status_code)
        self.body = body


class TaskStatusError(RemoteServiceError):
    def __init__(self, task_id: str, status_code: int, body: str = "") -> None:
        super().__init__(
            f"Status check for task {task_id} failed ({status_code}): {body}",
            status_code,
        )
        self.task_id = task_id


class DownloadError(RemoteServiceError):
    pass


class TaskFailed(RemoteServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(f"Task failed: {message}")
        self.reason = message


class TaskCanceled(RemoteServiceError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} was canceled")
        self.task_id = task_id


class TaskNotFound(RemoteServiceError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}", 404)
        self.task_id = task_id


class TaskTimeout(RemoteServiceError):
    def __init__(self, task_id: str, waited_seconds: float) -> None:
        super().__init__(f"Task {task_id} timed out after {waited_seconds:.0f} seconds")
        self.task_id = task_id


class MergeError(PipelineError):
    pass

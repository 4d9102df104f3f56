"""Shared exceptions for the application.

This module contains exception classes used across clients, services and
scripts so that a script's top-level handler can report any failure the
same way.
"""


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid.

    Example: a concatenation requested with a transition image that does
    not exist on disk.
    """

    pass


class ExternalServiceError(Exception):
    """Raised when a hosted service answers with an error payload.

    Attributes:
        service: Short service name (e.g., "kie", "n8n", "supabase").
        status_code: HTTP status or API-level code, if known.
        body: Raw response body (truncated) for debugging.
    """

    def __init__(self, service: str, message: str, status_code: int | None = None, body: str = ""):
        self.service = service
        self.status_code = status_code
        self.body = body[:500]
        super().__init__(message)

    def __str__(self) -> str:
        base_message = super().__str__()
        if self.status_code is None:
            return f"[{self.service}] {base_message}"
        return f"[{self.service}] {base_message} (status={self.status_code})"


class GenerationFailedError(Exception):
    """Raised when a remote generation task reports failure.

    Attributes:
        task_id: KIE.ai task identifier.
    """

    def __init__(self, task_id: str, message: str):
        self.task_id = task_id
        super().__init__(f"Generation task {task_id} failed: {message}")


class GenerationTimeoutError(Exception):
    """Raised when polling hits its attempt ceiling before the task finishes.

    Attributes:
        task_id: KIE.ai task identifier.
        attempts: Number of status checks performed.
    """

    def __init__(self, task_id: str, attempts: int):
        self.task_id = task_id
        self.attempts = attempts
        super().__init__(f"Generation task {task_id} not finished after {attempts} attempts")


class FFmpegError(Exception):
    """Raised when ffmpeg or ffprobe exits with a non-zero code.

    Attributes:
        command (list[str]): Full command line
        exit_code (int): Process exit code
        stderr (str): Captured stderr output
    """

    def __init__(self, command: list[str], exit_code: int, stderr: str) -> None:
        self.command: list[str] = command
        self.exit_code: int = exit_code
        self.stderr: str = stderr
        tail = stderr[-500:] if len(stderr) > 500 else stderr
        super().__init__(f"{command[0]} failed with exit code {exit_code}: {tail}")

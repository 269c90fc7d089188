"""
Exception types raised by the content pipeline.

Per-item failures (one crawl, one product) are caught and logged by the
loops that own them. Everything here that escapes those loops fails the
operation, and a job-level escape is recorded as a FAILED job.
"""


class PipelineError(Exception):
    """Base error for content pipeline operations."""

    pass


class SkillNotFoundError(PipelineError):
    """
    A named skill (prompt template) is missing.

    Indicates a deployment problem, so it is raised immediately rather than
    defaulted.
    """

    def __init__(self, name: str):
        self.skill_name = name
        super().__init__(f'Skill "{name}" not found')


class LlmRunnerError(PipelineError):
    """The LLM call failed (non-zero exit status or HTTP error)."""

    pass


class LlmTimeoutError(LlmRunnerError):
    """The LLM call exceeded its time budget."""

    pass


class LlmOutputParseError(PipelineError):
    """The LLM response did not contain a JSON object."""

    def __init__(self, message: str, raw_output: str = ""):
        self.raw_output = raw_output
        super().__init__(message)


class JobConflictError(PipelineError):
    """Another pipeline job is already pending or running."""

    pass


class InvalidJobTransition(PipelineError):
    """A job status change that would move the job backwards."""

    pass

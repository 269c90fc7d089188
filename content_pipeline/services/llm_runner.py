"""
LLM Runner - executes one prompt and returns the raw response text.

Two interchangeable backends:
- ClaudeCliRunner: runs the Claude CLI as a subprocess (default)
- AnthropicHttpRunner: calls the Anthropic Messages API with httpx

Runners are stateless and never retry; retry policy belongs to callers.
"""

import asyncio
import logging
import os
from typing import Dict, List, Optional

import httpx
from django.conf import settings

from content_pipeline.exceptions import LlmRunnerError, LlmTimeoutError

logger = logging.getLogger(__name__)

# Environment markers that make the CLI refuse to start inside another session
NESTED_SESSION_ENV_VARS = ("CLAUDECODE", "CLAUDE_CODE_ENTRYPOINT", "CLAUDE_CODE_SSE_PORT")

ANTHROPIC_VERSION = "2023-06-01"


class ClaudeCliRunner:
    """
    Runs prompts through the Claude CLI in print mode.

    The prompt is written to the child's stdin so long HTML payloads are not
    subject to argv length limits.
    """

    def __init__(
        self,
        command: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the CLI runner.

        Args:
            command: CLI executable (defaults to settings.LLM_CLI_COMMAND)
            timeout: Seconds before the child is killed (defaults to settings.LLM_TIMEOUT_SECONDS)
        """
        self.command = command or getattr(settings, "LLM_CLI_COMMAND", "claude")
        self.timeout = timeout or getattr(settings, "LLM_TIMEOUT_SECONDS", 120)

    def build_args(
        self,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
    ) -> List[str]:
        """Build the CLI argument vector (the prompt itself goes to stdin)."""
        args = [self.command, "-p"]
        if system_prompt:
            args.extend(["--system-prompt", system_prompt])
        if model and model != "default":
            args.extend(["--model", model])
        return args

    @staticmethod
    def build_env() -> Dict[str, str]:
        """Copy of the current environment without nested-session markers."""
        env = dict(os.environ)
        for name in NESTED_SESSION_ENV_VARS:
            env.pop(name, None)
        return env

    async def run(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Run a prompt and return stripped stdout.

        The CLI has no temperature flag, so temperature is accepted for
        interface compatibility and ignored.

        Raises:
            LlmTimeoutError: If the child does not finish within the timeout
            LlmRunnerError: If the child cannot start or exits non-zero
        """
        args = self.build_args(system_prompt=system_prompt, model=model)
        logger.debug(f"Running LLM CLI (prompt length: {len(prompt)} chars)")

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self.build_env(),
            )
        except OSError as e:
            raise LlmRunnerError(f"Failed to start {self.command}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(input=prompt.encode("utf-8")),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise LlmTimeoutError(f"LLM CLI timed out after {self.timeout}s")

        if process.returncode != 0:
            error_text = stderr.decode("utf-8", errors="replace").strip()
            raise LlmRunnerError(
                f"LLM CLI exited with status {process.returncode}: {error_text[:500]}"
            )

        return stdout.decode("utf-8", errors="replace").strip()


class AnthropicHttpRunner:
    """
    Runs prompts through the Anthropic Messages API.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        default_model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key or getattr(settings, "ANTHROPIC_API_KEY", "")
        self.api_url = api_url or getattr(
            settings, "ANTHROPIC_API_URL", "https://api.anthropic.com/v1/messages"
        )
        self.default_model = default_model or getattr(
            settings, "LLM_DEFAULT_MODEL", "claude-sonnet-4-5"
        )
        self.max_tokens = max_tokens or getattr(settings, "LLM_MAX_TOKENS", 4096)
        self.timeout = timeout or getattr(settings, "LLM_TIMEOUT_SECONDS", 120)

    def _get_headers(self) -> Dict[str, str]:
        """Build request headers with authentication."""
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def build_payload(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> Dict:
        payload = {
            "model": model if model and model != "default" else self.default_model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            payload["system"] = system_prompt
        if temperature is not None:
            payload["temperature"] = temperature
        return payload

    async def run(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Run a prompt and return the concatenated text blocks.

        Raises:
            LlmTimeoutError: On request timeout
            LlmRunnerError: On connection errors or non-200 responses
        """
        if not self.api_key:
            raise LlmRunnerError("ANTHROPIC_API_KEY not configured")

        payload = self.build_payload(prompt, system_prompt, model, temperature)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.api_url,
                    json=payload,
                    headers=self._get_headers(),
                )
        except httpx.TimeoutException as e:
            raise LlmTimeoutError(f"Request timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise LlmRunnerError(f"Connection error: {e}") from e

        if response.status_code != 200:
            raise LlmRunnerError(
                f"API returned status {response.status_code}: {response.text[:200]}"
            )

        data = response.json()
        text = "".join(
            block.get("text", "")
            for block in data.get("content", [])
            if block.get("type") == "text"
        )
        return text.strip()


def get_llm_runner(backend: Optional[str] = None):
    """Return the runner selected by settings.LLM_BACKEND."""
    backend = backend or getattr(settings, "LLM_BACKEND", "cli")
    if backend == "cli":
        return ClaudeCliRunner()
    if backend == "http":
        return AnthropicHttpRunner()
    raise ValueError(f"Unknown LLM_BACKEND: {backend}")

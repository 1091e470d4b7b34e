"""
Claude CLI runner.

Invokes ``claude -p`` as a subprocess with the prompt on stdin and turns its
output into an AssistantResult. Three output formats are supported:

  json         one JSON document at exit, includes usage and cost
  stream-json  newline-delimited JSON events, parsed as they arrive
  text         plain text, no usage information

Nothing in this module raises for a failed invocation: spawn errors, non-zero
exits and timeouts all come back as ``AssistantResult(success=False, ...)``.
Malformed JSON is not a failure either; it degrades to the raw text.
"""

from __future__ import annotations

import codecs
import json
import logging
import os
import subprocess
import threading
from dataclasses import dataclass
from typing import Callable, Iterator

from bbreview_core.config import Config
from bbreview_core.tools import ToolPolicy

logger = logging.getLogger(__name__)

_READ_SIZE = 64 * 1024


@dataclass(frozen=True)
class Usage:
    input_tokens: int
    output_tokens: int
    total_tokens: int
    cost_usd: float | None = None


@dataclass(frozen=True)
class AssistantResult:
    """Outcome of a single assistant invocation.

    ``output`` is populated on failure too (whatever stdout was captured) so
    callers can show it for diagnosis.
    """

    success: bool
    output: str
    usage: Usage | None = None
    error: str | None = None
    timed_out: bool = False


def build_claude_args(config: Config, policy: ToolPolicy, output_format: str | None = None) -> list[str]:
    fmt = output_format or config.output_format
    args = [config.claude_bin, "-p"]
    if fmt == "stream-json":
        # The CLI refuses stream-json in print mode without --verbose.
        args.append("--verbose")
    args += ["--output-format", fmt, "--model", config.model, "--max-turns", str(config.max_turns)]
    if policy.allowed_tools:
        args += ["--allowed-tools", ",".join(policy.allowed_tools)]
    if policy.blocked_tools:
        args += ["--disallowed-tools", ",".join(policy.blocked_tools)]
    return args


def build_env(config: Config) -> dict[str, str]:
    env = os.environ.copy()
    env["ANTHROPIC_API_KEY"] = config.anthropic_api_key
    # Auto-update prompts would hang a non-interactive run.
    env["DISABLE_AUTOUPDATER"] = "1"
    return env


def _int(value) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def extract_usage(data: dict) -> Usage | None:
    """Read token counts and cost from a result document.

    Token counts come from a nested ``usage`` object or flat ``input_tokens`` /
    ``output_tokens`` fields. Returns None unless the document has a ``usage``
    object or a cost field.
    """
    usage = data.get("usage") if isinstance(data.get("usage"), dict) else None
    cost = data.get("cost_usd", data.get("total_cost_usd"))
    if usage is None and cost is None:
        return None

    usage = usage or {}
    input_tokens = _int(usage.get("input_tokens")) or _int(data.get("input_tokens"))
    output_tokens = _int(usage.get("output_tokens")) or _int(data.get("output_tokens"))
    return Usage(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=input_tokens + output_tokens,
        cost_usd=float(cost) if isinstance(cost, (int, float)) and not isinstance(cost, bool) else None,
    )


def _result_text(result) -> str:
    if isinstance(result, str):
        return result
    if isinstance(result, dict) and isinstance(result.get("text"), str):
        return result["text"]
    return ""


def parse_json_output(output: str) -> tuple[str, Usage | None]:
    """Parse ``--output-format json`` output into (text, usage).

    Falls back to the stripped raw output with no usage if the output is not
    a JSON object.
    """
    logger.debug("Raw Claude output length: %d", len(output))
    try:
        data = json.loads(output.strip())
    except ValueError as e:
        logger.debug("Failed to parse JSON output (%s); using raw text", e)
        return output.strip(), None

    if not isinstance(data, dict):
        logger.debug("JSON output is not an object; using raw text")
        return output.strip(), None

    text = _result_text(data.get("result"))
    logger.debug("Extracted text length: %d", len(text))
    return text, extract_usage(data)


class StreamParser:
    """Incremental parser for ``--output-format stream-json``.

    Output arrives in arbitrary chunks, so a JSON event can be split across
    two reads. ``feed`` keeps the trailing partial line buffered until the
    next chunk completes it.

    Text from ``assistant`` events accumulates in order. A ``result`` event's
    text is only used when no assistant text was seen, since it repeats the
    final message.
    """

    def __init__(self):
        self._buffer = ""
        self._parts: list[str] = []
        self.usage: Usage | None = None

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def feed(self, chunk: str) -> list[str]:
        """Consume a chunk and return any newly accumulated text pieces."""
        lines = (self._buffer + chunk).split("\n")
        self._buffer = lines.pop()
        new = []
        for line in lines:
            new.extend(self._handle_line(line))
        return new

    def finish(self) -> list[str]:
        """Flush a final line that was not newline-terminated."""
        line, self._buffer = self._buffer, ""
        return self._handle_line(line)

    def _handle_line(self, line: str) -> list[str]:
        if not line.strip():
            return []
        try:
            event = json.loads(line)
        except ValueError:
            # Diagnostics printed by the CLI are not JSON; skip them.
            logger.debug("Non-JSON stream line: %s", line[:200])
            return []
        if not isinstance(event, dict):
            return []

        new = []
        if event.get("type") == "assistant":
            message = event.get("message")
            content = message.get("content") if isinstance(message, dict) else None
            if not isinstance(content, list):
                content = []
            for block in content:
                if isinstance(block, dict) and block.get("type") == "text" and block.get("text"):
                    new.append(block["text"])
        elif event.get("type") == "result":
            self.usage = extract_usage(event) or self.usage
            text = _result_text(event.get("result"))
            if text and not self._parts:
                new.append(text)
        self._parts.extend(new)
        return new


def _failure_message(stderr: str, returncode: int) -> str:
    return stderr if stderr else f"Exit code: {returncode}"


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def run_claude(
    config: Config,
    prompt: str,
    policy: ToolPolicy,
    on_chunk: Callable[[str], None] | None = None,
) -> AssistantResult:
    """Run the assistant once and return its result.

    ``config.output_format`` selects buffered (json/text) or streaming
    (stream-json) execution; ``on_chunk`` only fires in streaming mode.
    """
    logger.info("Running Claude CLI (%s, model=%s)...", config.output_format, config.model)
    if config.output_format == "stream-json":
        return run_claude_streaming(config, prompt, policy, on_chunk=on_chunk)
    return _run_buffered(config, prompt, policy)


def _run_buffered(config: Config, prompt: str, policy: ToolPolicy) -> AssistantResult:
    args = build_claude_args(config, policy)
    logger.debug("Claude args: %s", " ".join(args[1:]))

    try:
        proc = subprocess.run(
            args,
            input=prompt,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=config.timeout,
            cwd=config.repo_dir,
            env=build_env(config),
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        logger.error("Claude timed out after %d seconds", config.timeout)
        return AssistantResult(
            success=False,
            output=_as_text(e.stdout).strip(),
            error=f"Claude timed out after {config.timeout} seconds",
            timed_out=True,
        )
    except OSError as e:
        logger.error("Failed to spawn Claude: %s", e)
        return AssistantResult(success=False, output="", error=str(e))

    logger.info("Claude exited with code: %d", proc.returncode)
    if proc.stderr:
        logger.debug("Claude stderr: %s", proc.stderr)

    if proc.returncode != 0:
        return AssistantResult(
            success=False,
            output=proc.stdout.strip(),
            error=_failure_message(proc.stderr, proc.returncode),
        )

    if config.output_format == "text":
        return AssistantResult(success=True, output=proc.stdout.strip())

    text, usage = parse_json_output(proc.stdout)
    return AssistantResult(success=True, output=text, usage=usage)


class ClaudeStream:
    """Streaming invocation exposed as an iterator of text pieces.

    Iterating spawns the process and yields text as the assistant produces
    it. Once iteration finishes, ``result`` holds the AssistantResult. The
    stream can only be iterated once; if the consumer stops early the process
    is killed and ``result`` stays None.
    """

    def __init__(self, config: Config, prompt: str, policy: ToolPolicy):
        self.config = config
        self.prompt = prompt
        self.policy = policy
        self.result: AssistantResult | None = None
        self._started = False
        self._timed_out = False

    def __iter__(self) -> Iterator[str]:
        if self._started:
            raise RuntimeError("ClaudeStream can only be iterated once")
        self._started = True
        return self._run()

    def _run(self) -> Iterator[str]:
        args = build_claude_args(self.config, self.policy, "stream-json")
        logger.debug("Claude args: %s", " ".join(args[1:]))

        try:
            process = subprocess.Popen(
                args,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=self.config.repo_dir,
                env=build_env(self.config),
            )
        except OSError as e:
            logger.error("Failed to spawn Claude: %s", e)
            self.result = AssistantResult(success=False, output="", error=str(e))
            return

        stderr_parts: list[str] = []

        def read_stderr():
            for line in process.stderr:
                text = line.decode("utf-8", errors="replace")
                stderr_parts.append(text)
                logger.debug("Claude stderr: %s", text.rstrip())

        def kill():
            self._timed_out = True
            process.kill()

        stderr_thread = threading.Thread(target=read_stderr, daemon=True)
        stderr_thread.start()
        timer = threading.Timer(self.config.timeout, kill)
        timer.daemon = True
        timer.start()

        parser = StreamParser()
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            try:
                process.stdin.write(self.prompt.encode("utf-8"))
                process.stdin.close()
            except BrokenPipeError:
                # The process died before reading its input; the exit code says why.
                logger.debug("Claude closed stdin early")

            while True:
                chunk = process.stdout.read1(_READ_SIZE)
                if not chunk:
                    break
                yield from parser.feed(decoder.decode(chunk))
            yield from parser.feed(decoder.decode(b"", final=True))
            yield from parser.finish()

            returncode = process.wait()
            stderr_thread.join(timeout=5)
        finally:
            timer.cancel()
            if process.poll() is None:
                process.kill()
                process.wait()

        logger.info("Claude exited with code: %d", returncode)
        output = parser.text.strip()
        if self._timed_out:
            self.result = AssistantResult(
                success=False,
                output=output,
                error=f"Claude timed out after {self.config.timeout} seconds",
                timed_out=True,
            )
        elif returncode != 0:
            self.result = AssistantResult(
                success=False,
                output=output,
                error=_failure_message("".join(stderr_parts), returncode),
            )
        else:
            self.result = AssistantResult(success=True, output=output, usage=parser.usage)


def run_claude_streaming(
    config: Config,
    prompt: str,
    policy: ToolPolicy,
    on_chunk: Callable[[str], None] | None = None,
) -> AssistantResult:
    stream = ClaudeStream(config, prompt, policy)
    for piece in stream:
        if on_chunk is not None:
            on_chunk(piece)
    return stream.result


def log_usage(usage: Usage | None) -> None:
    if usage is None:
        return
    logger.info("--- Claude Usage ---")
    logger.info("  Input tokens:  %s", f"{usage.input_tokens:,}")
    logger.info("  Output tokens: %s", f"{usage.output_tokens:,}")
    logger.info("  Total tokens:  %s", f"{usage.total_tokens:,}")
    if usage.cost_usd is not None:
        logger.info("  Cost:          $%.4f", usage.cost_usd)
    logger.info("--------------------")

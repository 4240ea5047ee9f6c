"""
Git operations for the git agent.

Commands run through ``subprocess`` as an argument list (never a shell) in
the repository from the input or the ``repo-path`` runtime context value. A
failed git command is reported in the output (``success=False``) so the agent
can react to it. Only a disabled system access or an unusable repository
raises.
"""

import asyncio
import re
import subprocess
import time
import typing as t
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from deanmachines.runtime_context import ContextModel, get_runtime_context, parse_context
from deanmachines.tools_core.base_tool import BaseTool, ToolExecutionError
from deanmachines.utilities.utils import generate_id, truncate

GitOperation = t.Literal[
    "clone", "pull", "push", "fetch", "status", "add", "commit", "branch",
    "checkout", "merge", "rebase", "log", "diff", "remote", "tag", "stash",
    "reset", "revert", "cherry-pick", "blame", "show", "config",
]

_CONVENTIONAL_RE = re.compile(r"^(feat|fix|docs|style|refactor|test|chore)(\(.+\))?: .+")


class GitToolError(ToolExecutionError):
    """Raised when a git command cannot be run at all."""


class GitToolContext(ContextModel):
    user_id: str = Field(default="anonymous", alias="user-id")
    session_id: str = Field(default="default", alias="session-id")
    repo_path: str = Field(default="", alias="repo-path")
    default_branch: str = Field(default="main", alias="default-branch")
    commit_format: t.Literal["conventional", "standard", "custom"] = Field(
        default="conventional", alias="commit-format"
    )
    enable_system_access: bool = Field(default=True, alias="enable-system-access")
    # milliseconds
    execution_timeout: int | None = Field(default=None, alias="execution-timeout")
    debug: bool = False


class GitOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    branch: str | None = Field(default=None, description="Branch name for operations")
    remote: str = Field(default="origin", description="Remote name")
    message: str | None = Field(default=None, description="Commit message")
    author: str | None = Field(default=None, description="Author for commits")
    force: bool = False
    depth: int | None = Field(default=None, ge=1, description="Clone depth")
    tags: bool = Field(default=True, description="Include tags")
    rebase: bool = Field(default=False, description="Use rebase for pull")
    cached: bool = Field(default=False, description="Show staged changes only")
    name_only: bool = Field(default=False, description="Show only file names")
    stat: bool = Field(default=False, description="Show diffstat")


class GitInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    operation: GitOperation = Field(description="Git operation to perform")
    repository_path: str | None = Field(
        default=None,
        min_length=1,
        description="Path to the Git repository (defaults to the repo-path context value)",
    )
    arguments: list[str] = Field(
        default_factory=list, description="Additional arguments for the Git command"
    )
    options: GitOptions = Field(default_factory=GitOptions)
    timeout: int = Field(
        default=30_000, ge=1000, le=300_000, description="Timeout in milliseconds (1s-5min)"
    )


class GitOutput(BaseModel):
    success: bool = Field(description="Whether the Git operation succeeded")
    output: str = Field(description="Command output")
    error: str | None = Field(default=None, description="Error message if the operation failed")
    exit_code: int
    operation: GitOperation
    repository_path: str
    execution_time_ms: float
    request_id: str
    user_id: str | None = None
    session_id: str | None = None


def format_commit_message(message: str, commit_format: str) -> str:
    if commit_format == "conventional" and not _CONVENTIONAL_RE.match(message):
        return f"feat: {message}"
    return message


def build_git_command(
    operation: GitOperation,
    arguments: list[str],
    options: GitOptions,
    repo_path: str,
    default_branch: str = "main",
    commit_format: str = "conventional",
) -> list[str]:
    """The argv for one git operation, run with ``git -C <repo_path>``."""
    command = ["git", "-C", repo_path, operation]
    args = list(arguments)

    if operation == "clone":
        if options.depth:
            command += ["--depth", str(options.depth)]
        if options.branch:
            command += ["--branch", options.branch]
        if not options.tags:
            command.append("--no-tags")
    elif operation == "commit":
        if options.message:
            command += ["-m", format_commit_message(options.message, commit_format)]
        if options.author:
            command.append(f"--author={options.author}")
    elif operation in ("push", "pull"):
        if operation == "push" and options.force:
            command.append("--force")
        if operation == "push" and options.tags:
            command.append("--tags")
        if operation == "pull" and options.rebase:
            command.append("--rebase")
        command += [options.remote, options.branch or default_branch]
    elif operation == "branch":
        if options.force:
            command.append("--force")
    elif operation == "checkout":
        if options.force:
            command.append("--force")
        if not args:
            args.append(options.branch or default_branch)
    elif operation == "diff":
        if options.cached:
            command.append("--cached")
        if options.name_only:
            command.append("--name-only")
        if options.stat:
            command.append("--stat")

    return command + args


class GitTool(BaseTool[GitInput, GitOutput]):
    _name = "git-operations"
    description = "Execute Git operations (status, log, diff, commit, branch, ...) in a repository"
    _input = GitInput
    _output = GitOutput

    def invoke(self, input: GitInput) -> GitOutput:
        ctx = parse_context(GitToolContext, get_runtime_context())
        if not ctx.enable_system_access:
            raise GitToolError("System access is required for Git operations but is disabled")

        repo_path = input.repository_path or ctx.repo_path or str(Path.cwd())
        if not Path(repo_path).is_dir():
            raise GitToolError(f"Repository path does not exist: {repo_path}")

        request_id = generate_id()
        command = build_git_command(
            input.operation,
            input.arguments,
            input.options,
            repo_path,
            default_branch=ctx.default_branch,
            commit_format=ctx.commit_format,
        )
        timeout_ms = ctx.execution_timeout or input.timeout
        if ctx.debug:
            logger.debug("[{}] Executing Git command: {}", request_id, " ".join(command))

        start = time.perf_counter()
        try:
            completed = subprocess.run(
                command, capture_output=True, text=True, timeout=timeout_ms / 1000
            )
            exit_code = completed.returncode
            output = completed.stdout
            if completed.stderr:
                output += f"\nSTDERR: {completed.stderr}"
            error = (
                None
                if exit_code == 0
                else f"Git operation failed with exit code {exit_code}: {completed.stderr}"
            )
        except subprocess.TimeoutExpired:
            exit_code, output = 1, ""
            error = f"Git operation timed out after {timeout_ms}ms"
        except FileNotFoundError as e:
            raise GitToolError("git executable not found") from e

        if error:
            logger.warning(
                "[{}] Git {} failed | {}", request_id, input.operation, truncate(error, 200)
            )

        return GitOutput(
            success=exit_code == 0,
            output=output,
            error=error,
            exit_code=exit_code,
            operation=input.operation,
            repository_path=repo_path,
            execution_time_ms=(time.perf_counter() - start) * 1000,
            request_id=request_id,
            user_id=ctx.user_id,
            session_id=ctx.session_id,
        )

    async def ainvoke(self, input: GitInput) -> GitOutput:
        return await asyncio.to_thread(self.invoke, input)

    example_inputs = (GitInput(operation="status"), GitInput(operation="log", arguments=["-5"]))

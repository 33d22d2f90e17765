import asyncio
import platform
import subprocess
from dataclasses import dataclass

from loguru import logger

_IS_WINDOWS = platform.system() == "Windows"


@dataclass(frozen=True)
class CommandResult:
    output: str
    exit_code: int | None
    timed_out: bool = False

    @property
    def executed(self) -> bool:
        return self.exit_code is not None and not self.timed_out


async def _spawn(command: str, cwd: str | None) -> asyncio.subprocess.Process:
    if _IS_WINDOWS:
        return await asyncio.create_subprocess_shell(
            f"cmd.exe /c {command}",
            stdin=subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            creationflags=subprocess.CREATE_NEW_PROCESS_GROUP,
        )
    return await asyncio.create_subprocess_shell(
        command,
        stdin=subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=cwd,
    )


async def run_shell_command(
    command: str,
    *,
    cwd: str | None = None,
    timeout: float = 120.0,
) -> CommandResult:
    """Run ``command`` through the user's shell, capturing stdout and stderr."""
    try:
        proc = await _spawn(command, cwd)
    except OSError as ex:
        logger.warning(f"Could not start command {command!r}: {ex}")
        return CommandResult(output=f"Error executing command: {ex}", exit_code=None)

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        try:
            await asyncio.wait_for(proc.communicate(), timeout=5)
        except (asyncio.TimeoutError, ProcessLookupError):
            pass
        logger.warning(f"Command timed out after {timeout:.0f}s: {command}")
        return CommandResult(output=f"[timed out after {timeout:.0f}s]", exit_code=None, timed_out=True)

    output = stdout.decode(errors="replace") + stderr.decode(errors="replace")
    if proc.returncode != 0:
        output = f"{output}\n[exit code {proc.returncode}]"
    return CommandResult(output=output.rstrip(), exit_code=proc.returncode)

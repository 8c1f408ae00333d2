"""Async subprocess helpers for the package manager and type checker."""

import asyncio
import logging
import shlex
from pathlib import Path

DEFAULT_TIMEOUT = 30
TYPECHECK_TIMEOUT = 300
INSTALL_TIMEOUT = 600

_logging = logging.getLogger(__name__)


async def run_command_async(
    command: str | list[str],
    cwd: Path | None = None,
    timeout: int = DEFAULT_TIMEOUT,
) -> tuple[str, int]:
    """Run a command without a shell and return combined output and return code.

    A string command is split with shlex. A missing executable or a timeout
    is reported as return code 1 with the reason as output.
    """
    argv = shlex.split(command) if isinstance(command, str) else list(command)
    display = shlex.join(argv)
    process = None
    try:
        _logging.debug(f"Running command: {display} (cwd={cwd or '.'})")
        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd) if cwd else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            process.kill()
            _ = await process.wait()
            _logging.error(f"Command timed out after {timeout} seconds: {display}")
            return f"Command timed out after {timeout} seconds", 1

        output = stdout.decode(errors="replace").strip()
        err_text = stderr.decode(errors="replace").strip()
        if err_text:
            _logging.debug(f"stderr: {err_text}")
            output = f"{output}\n{err_text}" if output else err_text
        return output, process.returncode if process.returncode is not None else 1
    except FileNotFoundError:
        _logging.error(f"Command not found: {argv[0]}")
        return f"Error: command not found: {argv[0]}", 1
    except OSError as e:
        _logging.error(f"Command execution failed: {type(e).__name__}: {e} | Command: {display}")
        return f"Error: {e}", 1
    finally:
        if process:
            transport = getattr(process, "_transport", None)
            if transport:
                transport.close()


__all__ = [
    "DEFAULT_TIMEOUT",
    "TYPECHECK_TIMEOUT",
    "INSTALL_TIMEOUT",
    "run_command_async",
]

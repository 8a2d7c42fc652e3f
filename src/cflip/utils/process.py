import subprocess
from typing import Callable, List, Optional

from ..platform import current_platform


def claude_process_names(platform_name: Optional[str] = None) -> List[str]:
    if (platform_name or current_platform()) == "darwin":
        return ["Claude Code", "claude-code"]
    return ["claude-code"]


def is_process_running(name: str, runner: Callable = subprocess.run) -> bool:
    """check via `pgrep -f` whether any process command line matches name."""
    try:
        result = runner(
            ["pgrep", "-f", name],
            capture_output=True,
            text=True,
        )
    except (FileNotFoundError, PermissionError):
        # no pgrep on this host, nothing we can detect
        return False
    return result.returncode == 0 and bool(result.stdout.strip())


def running_processes(names: List[str], runner: Callable = subprocess.run) -> List[str]:
    """return the subset of names that currently have a matching process."""
    return [name for name in names if is_process_running(name, runner)]

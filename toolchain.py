"""Build and run collaborators: thin wrappers over the system C compiler and
the binary it produces. Both calls are bounded by a timeout."""
from typing import List, Optional
import logging, os, shlex, subprocess

log = logging.getLogger(__name__)

CC = os.getenv("BP_CC", "cc")
CFLAGS = shlex.split(os.getenv("BP_CFLAGS", ""))
BUILD_TIMEOUT = float(os.getenv("BP_BUILD_TIMEOUT", "30"))
RUN_TIMEOUT = float(os.getenv("BP_RUN_TIMEOUT", "10"))

class ToolchainError(Exception): pass

class BuildError(ToolchainError):
    def __init__(self, returncode: int, stderr: str):
        super().__init__(f"build failed with exit status {returncode}")
        self.returncode=returncode; self.stderr=stderr

class RunError(ToolchainError):
    def __init__(self, returncode: int, stdout: str = ""):
        super().__init__(f"program exited with status {returncode}")
        self.returncode=returncode; self.stdout=stdout

class ToolchainTimeout(ToolchainError):
    def __init__(self, cmd: List[str], timeout: float):
        super().__init__(f"{cmd[0]} timed out after {timeout:g}s")
        self.cmd=cmd; self.timeout=timeout

def _call(cmd: List[str], timeout: float) -> subprocess.CompletedProcess:
    log.info("running: %s", " ".join(cmd))
    try:
        return subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, check=False)
    except subprocess.TimeoutExpired as e:
        raise ToolchainTimeout(cmd, timeout) from e

def build(c_path: str, out_path: str, cc: Optional[str] = None,
          timeout: Optional[float] = None) -> str:
    """Compile c_path into out_path; returns the compiler's stderr (warnings)."""
    cmd=[cc or CC, *CFLAGS, c_path, "-o", out_path]
    try:
        r=_call(cmd, BUILD_TIMEOUT if timeout is None else timeout)
    except FileNotFoundError as e:
        raise BuildError(127, f"{cmd[0]}: command not found\n") from e
    if r.returncode != 0:
        raise BuildError(r.returncode, r.stderr)
    return r.stderr

def run(binary: str, timeout: Optional[float] = None) -> str:
    """Execute binary with no arguments and return its stdout."""
    exe=binary if os.path.dirname(binary) else os.path.join(".", binary)
    try:
        r=_call([exe], RUN_TIMEOUT if timeout is None else timeout)
    except FileNotFoundError as e:
        raise RunError(127) from e
    if r.returncode != 0:
        raise RunError(r.returncode, r.stdout)
    return r.stdout

"""Pythonic wrapper around LLDB's SBProcess."""

from __future__ import annotations

import mmap
from typing import TYPE_CHECKING, Any, Dict

try:
    import lldb
except ImportError:
    lldb = None  # type: ignore[assignment]

from .types import ProcessState

if TYPE_CHECKING:
    from .target import Target

# Map LLDB integer state constants to our ProcessState enum.
_STATE_MAP: Dict[int, ProcessState] = {}


def _build_state_map() -> None:
    """Populate ``_STATE_MAP`` lazily once LLDB is available."""
    if _STATE_MAP or lldb is None:
        return
    _STATE_MAP.update(
        {
            lldb.eStateInvalid: ProcessState.INVALID,
            lldb.eStateUnloaded: ProcessState.UNLOADED,
            lldb.eStateConnected: ProcessState.CONNECTED,
            lldb.eStateAttaching: ProcessState.ATTACHING,
            lldb.eStateLaunching: ProcessState.LAUNCHING,
            lldb.eStateStopped: ProcessState.STOPPED,
            lldb.eStateRunning: ProcessState.RUNNING,
            lldb.eStateStepping: ProcessState.STEPPING,
            lldb.eStateCrashed: ProcessState.CRASHED,
            lldb.eStateDetached: ProcessState.DETACHED,
            lldb.eStateExited: ProcessState.EXITED,
            lldb.eStateSuspended: ProcessState.SUSPENDED,
        }
    )


class Process:
    """High-level wrapper around ``lldb.SBProcess``.

    Provides execution control needed around a scan and read-only access
    to the inferior's memory.
    """

    def __init__(self, sb_process: Any, target: Target) -> None:
        self._sb = sb_process
        self._target = target
        _build_state_map()

    # -- properties --------------------------------------------------------

    @property
    def target(self) -> Target:
        """Return the :class:`Target` this process belongs to."""
        return self._target

    @property
    def state(self) -> ProcessState:
        """Return the current process state as a :class:`ProcessState`."""
        raw = self._sb.GetState()
        return _STATE_MAP.get(raw, ProcessState.INVALID)

    @property
    def pid(self) -> int:
        """Return the process ID."""
        return self._sb.GetProcessID()

    @property
    def page_size(self) -> int:
        """Return the page size of the debugged system.

        LLDB does not expose the inferior's page size, so the host value
        is used; local and core-file debugging share it.
        """
        return mmap.PAGESIZE

    # -- execution control -------------------------------------------------

    def stop(self) -> None:
        """Halt the process."""
        error = self._sb.Stop()
        if error and not error.Success():
            raise RuntimeError(f"Failed to stop: {error}")

    def detach(self) -> None:
        """Detach from the process."""
        error = self._sb.Detach()
        if error and not error.Success():
            raise RuntimeError(f"Failed to detach: {error}")

    # -- memory ------------------------------------------------------------

    def read_memory(self, address: int, size: int) -> bytes:
        """Read *size* bytes from the process address space.

        Raises
        ------
        RuntimeError
            If LLDB reports the read as failed.
        """
        error = lldb.SBError()
        data = self._sb.ReadMemory(address, size, error)
        if error.Fail():
            raise RuntimeError(
                f"Failed to read {size} bytes at {address:#x}: {error}"
            )
        return bytes(data)

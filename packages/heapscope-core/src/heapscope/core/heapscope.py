"""HeapScope: top-level orchestrator."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from heapscope.bridge.types import ProcessState
from heapscope.core.events import ScanEventCallback
from heapscope.core.session import HeapSession
from heapscope.core.source import LLDBHeapTarget
from heapscope.core.types.config import HeapScopeConfig, load_config
from heapscope.core.types.heap import ReachabilityGraph, ScanResult

logger = logging.getLogger(__name__)


class HeapScope:
    """Attaches LLDB to a process and scans its heap.

    Usage:
        scope = HeapScope()
        scope.attach(1234)
        result = scope.scan()
        graph = scope.graph([result.chunks[0].address])
        scope.end()

    Or as a context manager:
        with HeapScope() as scope:
            scope.attach_by_name("nginx")
            result = scope.scan()
    """

    def __init__(
        self,
        config: Optional[HeapScopeConfig] = None,
        config_path: Optional[str] = None,
        event_callback: Optional[ScanEventCallback] = None,
    ):
        from heapscope.bridge import Debugger

        if config is not None:
            self.config = config
        else:
            self.config = load_config(config_path)

        if self.config.verbose:
            logging.basicConfig(level=logging.DEBUG)

        self.debugger = Debugger()
        self._event_callback = event_callback
        self._target = None
        self._process = None
        self._session: Optional[HeapSession] = None
        self._detach_on_end = False

    def _init_session(self) -> None:
        if self._process.state is ProcessState.RUNNING:
            logger.info("Stopping pid=%d for a consistent heap snapshot", self._process.pid)
            self._process.stop()
        self._session = HeapSession(
            LLDBHeapTarget(self._target, self._process),
            config=self.config,
            event_callback=self._event_callback,
        )

    def attach(self, pid: int) -> None:
        """Attach to a running process by PID."""
        self._target, self._process = self.debugger.attach(pid)
        self._detach_on_end = True
        self._init_session()
        logger.info("Attached to pid=%d", pid)

    def attach_by_name(self, name: str) -> None:
        """Attach to a running process by name."""
        self._target, self._process = self.debugger.attach_by_name(name)
        self._detach_on_end = True
        self._init_session()
        logger.info("Attached to %s (pid=%d)", name, self._process.pid)

    def load_core(self, executable: str, core_path: str) -> None:
        """Open a core dump for offline analysis."""
        self._target, self._process = self.debugger.load_core(executable, core_path)
        self._init_session()
        logger.info("Loaded core %s", core_path)

    @property
    def session(self) -> HeapSession:
        if self._session is None:
            raise RuntimeError("No process. Call attach() or load_core() first.")
        return self._session

    def scan(self) -> ScanResult:
        """Walk, classify and cross-reference the whole heap."""
        return self.session.scan()

    def graph(self, seed_addresses: Iterable[int]) -> ReachabilityGraph:
        """Chunks reachable from *seed_addresses* in the last scan."""
        return self.session.graph(seed_addresses)

    def dump_chunk(self, address: int) -> bytes:
        """Raw bytes of one chunk of the last scan."""
        return self.session.dump_chunk(address)

    def end(self) -> None:
        """Detach from the process and release the debugger."""
        if self._process is not None and self._detach_on_end:
            try:
                self._process.detach()
            except RuntimeError:
                logger.warning("Failed to detach from process", exc_info=True)
        self._process = None
        self._target = None
        self._session = None
        self.debugger.destroy()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.end()

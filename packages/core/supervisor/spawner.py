"""
Detached process creation and termination.

Launched apps run in their own session so that closing the launcher does not
take the app down with it, and the app exiting never signals the launcher.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Iterable, Protocol, Sequence

import psutil

from .errors import SpawnError
from .types import ProcessHandle

log = logging.getLogger(__name__)


class Spawner(Protocol):
    def spawn(self, command: Sequence[str]) -> ProcessHandle:
        ...

    def terminate(self, pids: Iterable[int], grace_seconds: float = 3.0) -> int:
        ...


class PopenSpawner:
    def spawn(self, command: Sequence[str]) -> subprocess.Popen:
        argv = list(command)
        if shutil.which(argv[0]) is None:
            raise SpawnError(f"executable not found: {argv[0]}")
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                close_fds=True,
                start_new_session=True,
            )
        except OSError as e:
            raise SpawnError(f"failed to start {argv[0]}: {e}") from e
        log.info("Spawned %s (pid %s)", argv[0], proc.pid)
        return proc

    def terminate(self, pids: Iterable[int], grace_seconds: float = 3.0) -> int:
        """Terminate the given processes and their children, killing stragglers.

        Returns the number of processes that were signalled.
        """
        procs: list[psutil.Process] = []
        seen: set[int] = set()
        for pid in pids:
            try:
                root = psutil.Process(pid)
                family = [*root.children(recursive=True), root]
            except psutil.Error:
                continue
            for p in family:
                if p.pid not in seen:
                    seen.add(p.pid)
                    procs.append(p)

        signalled: list[psutil.Process] = []
        for p in procs:
            try:
                p.terminate()
                signalled.append(p)
            except psutil.Error:
                continue

        _, alive = psutil.wait_procs(signalled, timeout=grace_seconds)
        if alive:
            log.warning("Forcing kill of %d process(es)", len(alive))
            for p in alive:
                try:
                    p.kill()
                except psutil.Error:
                    continue
        return len(signalled)

from __future__ import annotations

import io
import logging
import signal
import subprocess
import sys
import threading
from typing import BinaryIO, List, Optional

from phantom_driver.service.errors import (
    AlreadyRunningError,
    LogPathError,
    NotRunningError,
    ProcessSpawnError,
    ProcessStateError,
    StreamAttachError,
)
from phantom_driver.service.schema import StopPolicy

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


def _console_sink(stream):
    # Redirected text streams (StringIO, notebooks) have no binary buffer
    buffer = getattr(stream, "buffer", None)
    return stream if buffer is None else buffer


def drain_stream(source: BinaryIO, sink: BinaryIO, name: str) -> None:
    """Copy bytes from a child pipe into sink until EOF. Once the sink fails the rest is dropped."""
    read = getattr(source, "read1", source.read)
    text_sink = isinstance(sink, io.TextIOBase)
    try:
        while True:
            chunk = read(CHUNK_SIZE)
            if not chunk:
                break
            sink.write(chunk.decode(errors="replace") if text_sink else chunk)
            sink.flush()
    except (OSError, ValueError, TypeError) as e:
        # ValueError is what a closed file object raises on write
        logger.warning(f"Stopped copying driver {name}: {e}")
        _discard(read)
    finally:
        source.close()


def _discard(read) -> None:
    """Keep emptying the pipe so the child never blocks or dies on a full or broken pipe."""
    try:
        while read(CHUNK_SIZE):
            pass
    except (OSError, ValueError) as e:
        logger.debug(f"Driver pipe closed while discarding output: {e}")


class ProcessSupervisor:
    """
    Owns at most one driver subprocess and the sink its output is copied to.

    Not thread-safe: start() and stop() must be called from one thread.
    """

    def __init__(self, stop_policy: Optional[StopPolicy] = None):
        self.stop_policy = stop_policy or StopPolicy()
        self._process: Optional[subprocess.Popen] = None
        self._log_file: Optional[BinaryIO] = None
        self._drains: List[threading.Thread] = []

    @property
    def running(self) -> bool:
        return self._process is not None

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process is not None else None

    def start(self, cmd: List[str], log_file: Optional[str] = None) -> None:
        if self._process is not None:
            raise AlreadyRunningError("driver start failed: driver already running")

        sink_file: Optional[BinaryIO] = None
        if log_file:
            try:
                sink_file = open(log_file, "wb")
            except (OSError, ValueError) as e:
                raise LogPathError(f"driver start failed: unable to open output log {log_file}: {e}") from e

        try:
            process = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except (OSError, ValueError) as e:
            if sink_file is not None:
                sink_file.close()
            raise ProcessSpawnError(f"driver start failed: {e}") from e

        if process.stdout is None or process.stderr is None:
            process.kill()
            if sink_file is not None:
                sink_file.close()
            raise StreamAttachError("driver start failed: could not attach to driver output")

        self._process = process
        self._log_file = sink_file
        logger.info(f"Started driver process {process.pid}: {' '.join(cmd)}")

        out_sink = sink_file or _console_sink(sys.stdout)
        err_sink = sink_file or _console_sink(sys.stderr)
        self._drains = [
            threading.Thread(target=drain_stream, args=(process.stdout, out_sink, "stdout"), daemon=True),
            threading.Thread(target=drain_stream, args=(process.stderr, err_sink, "stderr"), daemon=True),
        ]
        for thread in self._drains:
            thread.start()

    def stop(self) -> None:
        try:
            process = self._process
            if process is None:
                raise NotRunningError("stop failed: driver not running")
            if not process.pid:
                raise ProcessStateError("stop failed: process nil")
            returncode = process.poll()
            if returncode is not None:
                raise ProcessStateError(f"stop failed: process {process.pid} already exited with code {returncode}")

            self._interrupt(process)
            self._apply_stop_policy(process)
            logger.info(f"Stopped driver process {process.pid}")
        finally:
            if self._log_file is not None:
                self._log_file.close()
            self._process = None
            self._log_file = None
            self._drains = []

    def _interrupt(self, process: subprocess.Popen) -> None:
        try:
            if sys.platform == "win32":
                process.terminate()
            else:
                process.send_signal(signal.SIGINT)
        except OSError as e:
            raise ProcessStateError(f"stop failed: unable to signal process {process.pid}: {e}") from e

    def _apply_stop_policy(self, process: subprocess.Popen) -> None:
        policy = self.stop_policy
        if policy.wait_timeout is None:
            return
        try:
            process.wait(timeout=policy.wait_timeout)
        except subprocess.TimeoutExpired:
            if not policy.kill_on_timeout:
                logger.warning(f"Driver process {process.pid} still running after {policy.wait_timeout}s")
                return
            logger.warning(f"Killing driver process {process.pid} after {policy.wait_timeout}s")
            process.kill()
            process.wait()

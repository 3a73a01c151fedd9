"""
Background worker for PDF parsing.

The PDF library is imported lazily, once per process, and parsing jobs run on
a small thread pool. The worker is pinned to a library version; a job whose
worker version differs from the imported library fails with
`WorkerVersionMismatch`, and callers may re-run it with the worker disabled.
"""
import asyncio
import importlib
import logging
from concurrent.futures import ThreadPoolExecutor
from enum import Enum

from . import config
from .errors import WorkerVersionMismatch

logger = logging.getLogger(__name__)

PDF_LIBRARY = "PyPDF2"
WORKER_MISMATCH_MARKER = "does not match the Worker version"


class WorkerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


def _import_pdf_library():
    return importlib.import_module(PDF_LIBRARY)


def _run_job(func, library, data, worker_version):
    api_version = getattr(library, "__version__", None)
    if api_version != worker_version:
        raise WorkerVersionMismatch(
            f'The API version "{api_version}" {WORKER_MISMATCH_MARKER} "{worker_version}".'
        )
    return func(library, data)


class WorkerContext:
    """
    Process-wide initialization state for the PDF worker.

    Concurrent callers of `ensure_ready` share one in-flight initialization;
    the state becomes READY only after the worker options are written.
    """

    def __init__(self, pinned_version: str = None, max_workers: int = None):
        self.pinned_version = pinned_version or config.PDF_WORKER_VERSION
        self.max_workers = max_workers or config.PDF_WORKER_THREADS
        self.state = WorkerState.UNINITIALIZED
        self.library = None
        self.worker_version = None
        self._pending = None
        self._executor = None

    async def ensure_ready(self):
        if self.state is WorkerState.READY:
            return
        if self._pending is not None:
            pending = self._pending
            await asyncio.wait([pending])
            if pending.cancelled():
                # the initializing caller was cancelled; start over
                return await self.ensure_ready()
            return pending.result()

        loop = asyncio.get_running_loop()
        self.state = WorkerState.INITIALIZING
        self._pending = pending = loop.create_future()
        try:
            library = await loop.run_in_executor(None, _import_pdf_library)
        except BaseException as exc:
            self.state = WorkerState.UNINITIALIZED
            self._pending = None
            if isinstance(exc, Exception):
                logger.error("Failed to initialize the PDF worker: %s", exc)
                pending.set_exception(exc)
                # waiters re-raise it; mark it retrieved for the no-waiter case
                pending.exception()
            else:
                pending.cancel()
            raise

        self.library = library
        self.worker_version = self.pinned_version
        self.state = WorkerState.READY
        self._pending = None
        pending.set_result(None)
        logger.info(
            "PDF worker ready (library %s, worker version %s)",
            getattr(library, "__version__", "unknown"),
            self.worker_version,
        )

    @property
    def executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="pdf-worker"
            )
        return self._executor

    async def run(self, func, data: bytes, disable_worker: bool = False):
        """Run `func(library, data)` on the worker, or on a plain thread when disabled."""
        if self.state is not WorkerState.READY:
            raise RuntimeError("PDF worker is not initialized")
        if disable_worker:
            return await asyncio.to_thread(func, self.library, data)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self.executor, _run_job, func, self.library, data, self.worker_version
        )

    def shutdown(self):
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None

    def reset(self):
        """Drop the worker and return to UNINITIALIZED; lets tests start from a clean process state."""
        self.shutdown()
        self.state = WorkerState.UNINITIALIZED
        self.library = None
        self.worker_version = None
        self._pending = None


worker_context = WorkerContext()


async def ensure_worker_ready():
    await worker_context.ensure_ready()

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, BinaryIO, Callable

from .base import Action, Prepared
from ..errors import LocalIOError
from ..params import Params
from ..types import CoercionKind, Setter

PROGRESS_STEP = 10


class ProgressReader:
    """Wrap a binary file and report read progress in ``step`` percent increments.

    The body of a request may be read more than once (checksum, then upload);
    seeking back rewinds the reported progress so every pass is reported.
    """

    def __init__(self, handle: BinaryIO, total: int, report: Callable[[int, int], None], step: int = PROGRESS_STEP):
        self._handle = handle
        self.total = total
        self.report = report
        self.step = step
        self._reported = -1

    def read(self, size: int = -1) -> bytes:
        chunk = self._handle.read(size)
        self._progress(self._handle.tell())
        return chunk

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        position = self._handle.seek(offset, whence)
        self._reported = min(self._reported, self._bucket(position) - 1)
        return position

    def tell(self) -> int:
        return self._handle.tell()

    def __getattr__(self, name: str) -> Any:
        return getattr(self._handle, name)

    def _bucket(self, done: int) -> int:
        if self.total <= 0:
            return 100
        percent = min(done * 100 // self.total, 100)
        return percent - percent % self.step

    def _progress(self, done: int) -> None:
        bucket = self._bucket(done)
        if bucket > self._reported:
            self._reported = bucket
            self.report(done, self.total)


class CreateS3ObjectAction(Action):
    """Upload a local file to a bucket."""

    description = "create s3object"
    service = "s3"

    def check(self, params: Params) -> None:
        params.require("bucket")
        path = Path(params.require_str("file"))
        if not path.exists():
            raise LocalIOError(f"cannot find file '{path}'")
        if path.is_dir():
            raise LocalIOError(f"'{path}' is a directory")

    def build(self, params: Params) -> Prepared:
        path = Path(params.require_str("file"))
        key = params["name"] if params.text("name") else path.name
        return self.prepare(
            "PutObject",
            [
                Setter(params["bucket"], "Bucket", CoercionKind.STRING),
                Setter(key, "Key", CoercionKind.STRING),
            ],
        )

    def run(self, params: Params) -> Any:
        path = Path(params.require_str("file"))
        key = params.text("name") or path.name
        call, request = self.build(params)
        try:
            size = path.stat().st_size
            handle = path.open("rb")
        except OSError as exc:
            raise LocalIOError(f"opening '{path}': {exc}") from exc
        with handle:
            request.attach("Body", ProgressReader(handle, size, self._progress_logger(key)))
            self.logger.info("uploading '%s'", key)
            output = call.execute(request)
        self.logger.info("create s3object done")
        return output

    def _progress_logger(self, key: str) -> Callable[[int, int], None]:
        def report(done: int, total: int) -> None:
            percent = done * 100 // total if total else 100
            self.logger.info("uploading '%s': %d/%d bytes (%d%%)", key, done, total, percent)

        return report

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Tuple
from urllib.parse import unquote, urlsplit

from ..base import DownstreamAdapter, SourceConnection
from ..models import FieldResponse, ResponseCode
from .codec import JsonDocumentCodec


logger = logging.getLogger(__name__)


def path_from_url(url: str) -> Path:
    """
    file:///tmp/values.json -> /tmp/values.json
    file:values.json        -> values.json (relative to CWD)
    """
    parts = urlsplit(url)
    if parts.scheme != "file":
        raise ValueError(f"Not a file URL: {url!r}")
    if parts.netloc not in ("", "localhost"):
        raise ValueError(f"Remote file URLs are not supported: {url!r}")
    raw = unquote(parts.path)
    if not raw:
        raise ValueError(f"File URL without path: {url!r}")
    return Path(raw)


class FilePollConnection(SourceConnection):
    """
    Reads the JSON file on every read() and picks one key path.

    This is intentionally minimal and synchronous.
    """

    def __init__(self, *, path: Path, codec: JsonDocumentCodec) -> None:
        self._path = path
        self._codec = codec

    def read(self, address: str) -> FieldResponse:
        try:
            key_path = self._codec.parse_address(address)
        except ValueError:
            return FieldResponse(ResponseCode.INVALID_ADDRESS)

        data = json.loads(self._path.read_text(encoding="utf-8"))
        return self._codec.decode(key_path, data)

    def close(self) -> None:
        return


class FilePollAdapter(DownstreamAdapter):
    def __init__(self) -> None:
        self._codec = JsonDocumentCodec("file_poll")

    @property
    def downstream_name(self) -> str:
        return "file_poll"

    @property
    def schemes(self) -> Tuple[str, ...]:
        return ("file",)

    def connect(self, url: str, *, timeout: float) -> SourceConnection:
        path = path_from_url(url)
        if not path.is_file():
            raise FileNotFoundError(f"file_poll source does not exist: {str(path)!r}")
        return FilePollConnection(path=path, codec=self._codec)

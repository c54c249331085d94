#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

import httpx

from ..base import DownstreamAdapter, SourceConnection
from ..file_poll.codec import JsonDocumentCodec
from ..models import FieldResponse, ResponseCode


logger = logging.getLogger(__name__)

ClientFactory = Callable[[float], httpx.Client]


def _status_to_code(status_code: int) -> ResponseCode:
    if status_code == 404:
        return ResponseCode.NOT_FOUND
    if status_code in (401, 403):
        return ResponseCode.ACCESS_DENIED
    return ResponseCode.INTERNAL_ERROR


class HttpPollConnection(SourceConnection):
    """
    One-shot HTTP poll: GET JSON object and pick one key path
    """

    def __init__(self, *, url: str, client: httpx.Client, codec: JsonDocumentCodec) -> None:
        self._url = url
        self._client = client
        self._codec = codec

    def read(self, address: str) -> FieldResponse:
        try:
            key_path = self._codec.parse_address(address)
        except ValueError:
            return FieldResponse(ResponseCode.INVALID_ADDRESS)

        r = self._client.get(self._url)
        if r.status_code >= 300:
            logger.debug("http_poll %r answered %d", self._url, r.status_code)
            return FieldResponse(_status_to_code(r.status_code))
        try:
            data = r.json()
        except ValueError:
            return FieldResponse(ResponseCode.INVALID_DATATYPE)
        return self._codec.decode(key_path, data)

    def close(self) -> None:
        try:
            self._client.close()
        except Exception:
            logger.exception("http_poll client close failed")


class HttpPollAdapter(DownstreamAdapter):
    def __init__(self, *, client_factory: Optional[ClientFactory] = None) -> None:
        self._codec = JsonDocumentCodec("http_poll")
        self._client_factory = client_factory or (lambda timeout: httpx.Client(timeout=timeout))

    @property
    def downstream_name(self) -> str:
        return "http_poll"

    @property
    def schemes(self) -> Tuple[str, ...]:
        return ("http", "https")

    def connect(self, url: str, *, timeout: float) -> SourceConnection:
        # Validates the URL before any request is made
        httpx.URL(url)
        return HttpPollConnection(url=url, client=self._client_factory(timeout), codec=self._codec)

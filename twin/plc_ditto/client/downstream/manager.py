#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional
from urllib.parse import urlsplit

from .base import DownstreamAdapter, SourceConnection

logger = logging.getLogger(__name__)


class DriverManager:
    """
    Selects a downstream adapter by URL scheme and opens connections

    Example:
        drivers = DriverManager.default()
        with drivers.get_connection("s7://192.168.0.1/0/1", timeout=5.0) as conn:
            conn.read("%DB1:0:REAL")
    """

    def __init__(self, adapters: Optional[Iterable[DownstreamAdapter]] = None) -> None:
        self._by_scheme: Dict[str, DownstreamAdapter] = {}
        for adapter in adapters or ():
            self.register(adapter)

    @classmethod
    def default(cls) -> "DriverManager":
        # Imported here so the snap7 native library is only loaded when needed
        from .file_poll.adapter import FilePollAdapter
        from .http_poll.adapter import HttpPollAdapter
        from .s7.adapter import S7Adapter

        return cls([S7Adapter(), FilePollAdapter(), HttpPollAdapter()])

    def register(self, adapter: DownstreamAdapter) -> None:
        for scheme in adapter.schemes:
            scheme = scheme.lower()
            if scheme in self._by_scheme:
                logger.warning(
                    "Scheme %r: %s replaces %s",
                    scheme,
                    adapter.downstream_name,
                    self._by_scheme[scheme].downstream_name,
                )
            self._by_scheme[scheme] = adapter

    @property
    def schemes(self) -> Iterable[str]:
        return tuple(sorted(self._by_scheme))

    def get_adapter(self, url: str) -> DownstreamAdapter:
        scheme = urlsplit(url).scheme.lower()
        adapter = self._by_scheme.get(scheme)
        if adapter is None:
            raise ValueError(f"No downstream adapter for scheme {scheme!r} (url={url!r})")
        return adapter

    def get_connection(self, url: str, *, timeout: float) -> SourceConnection:
        return self.get_adapter(url).connect(url, timeout=timeout)

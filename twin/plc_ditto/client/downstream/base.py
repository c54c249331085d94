#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Tuple

from .models import FieldResponse


class SourceConnection(ABC):
    """
    Open connection to one source endpoint

    The reader opens a connection, reads exactly one address and closes it.
    Usable as a context manager so close() runs on every exit path.
    """

    @abstractmethod
    def read(self, address: str) -> FieldResponse:
        """
        Read one address

        Expected per-field failures (unknown address, access denied, ...) are
        returned as a FieldResponse with a non-OK code. Exceptions are reserved
        for transport problems.
        """
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    def __enter__(self) -> "SourceConnection":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class DownstreamAdapter(ABC):
    """
    Base interface for a downstream adapter (protocol driver)

    Adapter responsibilities:
      - schemes: URL schemes this adapter handles ("s7", "file", ...)
      - connect(url, timeout): open a SourceConnection to the endpoint,
          raise on malformed URL or unreachable endpoint
    """

    @property
    @abstractmethod
    def downstream_name(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def schemes(self) -> Tuple[str, ...]:
        raise NotImplementedError

    @abstractmethod
    def connect(self, url: str, *, timeout: float) -> SourceConnection:
        raise NotImplementedError


class DownstreamCodec(ABC):
    """
    Base interface for address parsing and raw -> value conversion per downstream

    parse_address(): address string -> adapter specific address object
    decode():        raw transport data for that address -> FieldResponse

    Notes:
      - codec should be reusable for any connection instance
      - codec does not know the declared ValueType; the reader coerces
        the decoded value afterwards
    """

    @property
    @abstractmethod
    def downstream_name(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def parse_address(self, address: str) -> Any:
        """
        Parse address string, raise ValueError if it is malformed
        """
        raise NotImplementedError

    @abstractmethod
    def decode(self, address: Any, raw: Any) -> FieldResponse:
        """
        Convert raw downstream data into a field response
        """
        raise NotImplementedError

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


# Ditto namespace: java-package like, may be empty
_NAMESPACE_RE = re.compile(r"^([a-zA-Z]\w*)(\.[a-zA-Z]\w*)*$")
# Ditto entity name: no slash, no control characters
_NAME_RE = re.compile(r"^[^\x00-\x1f\x7f/]+$")


class ValueType(Enum):
    """Declared type tag of a mapped configuration property"""

    DOUBLE = "DOUBLE"
    BOOLEAN = "BOOLEAN"
    INT = "INT"

    @classmethod
    def parse(cls, raw: object) -> "ValueType":
        """
        Parse the type tag from a mapping document (case-insensitive)

        Raises ValueError for anything that is not DOUBLE/BOOLEAN/INT
        """
        text = str(raw).strip().upper()
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"Type {raw!r} is not supported") from None


@dataclass(frozen=True)
class ModelRef:
    """
    Reference to a model in the catalog

    Example:
        ModelRef("org.apache.plc4x.examples", "VirtualMachine", "1.0.0")
          .catalog_id  -> "org.apache.plc4x.examples.VirtualMachine:1.0.0"
          .content_key -> "org.apache.plc4x.examples:VirtualMachine:1.0.0"
    """

    namespace: str
    name: str
    version: str

    @property
    def catalog_id(self) -> str:
        """Id used in catalog URLs"""
        return f"{self.namespace}.{self.name}:{self.version}"

    @property
    def content_key(self) -> str:
        """Key of the model section inside the mapping content document"""
        return f"{self.namespace}:{self.name}:{self.version}"


@dataclass(frozen=True)
class PropertySpec:
    """
    One polled property: where to read it and how often

    Built by the mapping resolver, consumed by exactly one poll task.

    Example:
        PropertySpec(
            name="temp",
            value_type=ValueType.DOUBLE,
            source_address="%DB1:0:REAL",
            source_url="s7://192.168.0.1/0/1",
            poll_interval_millis=1000,
        )
    """

    name: str
    value_type: ValueType
    source_address: str
    source_url: str
    poll_interval_millis: int

    def __post_init__(self) -> None:
        if self.poll_interval_millis <= 0:
            raise ValueError(f"Poll interval must be > 0, got {self.poll_interval_millis!r}")

    @property
    def poll_interval(self) -> float:
        """Poll interval in seconds"""
        return self.poll_interval_millis / 1000.0


@dataclass(frozen=True)
class TwinIdentity:
    """Destination twin, addressed in Ditto as "<namespace>:<twin_id>" """

    namespace: str
    twin_id: str

    def __post_init__(self) -> None:
        if self.namespace and not _NAMESPACE_RE.match(self.namespace):
            raise ValueError(f"Invalid twin namespace: {self.namespace!r}")
        if not _NAME_RE.match(self.twin_id or ""):
            raise ValueError(f"Invalid twin id: {self.twin_id!r}")

    @property
    def thing_id(self) -> str:
        return f"{self.namespace}:{self.twin_id}"

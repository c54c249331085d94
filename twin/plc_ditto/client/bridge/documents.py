#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Pydantic models for the catalog documents

Only the fragments the bridge reads are modelled, everything else in the
documents is ignored.

Mapping content (fragment):
    {
      "models": {
        "org.apache.plc4x.examples:VirtualMachine:1.0.0": {
          "configurationProperties": [
            {
              "name": "temp",
              "type": "DOUBLE",
              "stereotypes": [
                {
                  "name": "source",
                  "attributes": {"address": "%DB1:0:REAL", "rate": "1000", "url": "s7://192.168.0.1/0/1"}
                }
              ]
            }
          ]
        }
      }
    }
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator

_UNSIGNED_RE = re.compile(r"[0-9]+")


class MappingAttributes(BaseModel):
    """Protocol attributes of one mapped property (stereotypes[0].attributes)"""

    address: str
    rate: int
    url: str

    @field_validator("address", "url")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("rate", mode="before")
    @classmethod
    def _parse_rate(cls, v: Any) -> int:
        # Vorto delivers attribute values as strings
        if isinstance(v, bool):
            raise ValueError("rate must be an unsigned integer count of milliseconds")
        if isinstance(v, int):
            rate = v
        else:
            s = str(v).strip()
            if not _UNSIGNED_RE.fullmatch(s):
                raise ValueError(f"rate must be an unsigned integer count of milliseconds, got {v!r}")
            rate = int(s)
        if rate <= 0:
            raise ValueError(f"rate must be > 0, got {rate}")
        return rate


class Stereotype(BaseModel):
    name: Optional[str] = None
    attributes: Optional[Dict[str, Any]] = None


class ConfigurationProperty(BaseModel):
    name: str
    type: Any = None
    stereotypes: List[Stereotype] = []

    def mapping_attributes(self) -> Optional[Dict[str, Any]]:
        """Attribute block of the first stereotype, None if absent or empty"""
        if not self.stereotypes:
            return None
        return self.stereotypes[0].attributes or None


class ModelContent(BaseModel):
    configurationProperties: List[ConfigurationProperty] = []

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class LoadedDocument:
    """
    Thin wrapper over a loaded JSON document.

    Example (output):
        LoadedDocument(path="mapping.json", raw={...full document dict...})
    """
    path: str
    raw: Dict[str, Any]


def load_document(path: str) -> LoadedDocument:
    """
    Load a JSON object from disk.

    Input:
      path: path to JSON file (thing shape or mapping content).

    Output:
      LoadedDocument with .raw containing parsed dict.

    Raises:
      OSError if the file can not be read,
      ValueError if it is not valid JSON or not a JSON object.

    Example:
      mapping = load_document("mapping.json").raw
      models = mapping["models"]
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path!r} must contain a JSON object, got {type(data).__name__}")
    return LoadedDocument(path=path, raw=data)

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from twin.plc_ditto.client.bridge.config_loader import load_document
from twin.plc_ditto.client.bridge.models import ModelRef
from twin.plc_ditto.lib.constants import (
    CATALOG_MAPPING_PATH,
    CATALOG_THING_PATH,
    DEFAULT_CATALOG_URL,
    HTTP_TIMEOUT,
)

logger = logging.getLogger(__name__)


class CatalogError(RuntimeError):
    """Model or mapping document is not available (fatal at startup)"""


class ModelCatalog:
    """
    Fetches model documents from the Vorto REST API

      - thing shape: Ditto thing JSON generated for the model
      - mapping:     model content including the mapping stereotypes
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_CATALOG_URL,
        client: Optional[httpx.Client] = None,
        timeout: float = HTTP_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def fetch_thing_shape(self, model: ModelRef) -> Dict[str, Any]:
        url = self.base_url + CATALOG_THING_PATH.format(model_id=model.catalog_id)
        return self._get_json(url, params={"target": "thingJson"})

    def fetch_mapping(self, model: ModelRef, mapping: str) -> Dict[str, Any]:
        url = self.base_url + CATALOG_MAPPING_PATH.format(model_id=model.catalog_id, mapping=mapping)
        return self._get_json(url)

    def close(self) -> None:
        self._client.close()

    def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        logger.debug("Fetching %r", url)
        try:
            r = self._client.get(url, params=params)
        except httpx.HTTPError as e:
            raise CatalogError(f"Request to {url!r} failed: {e!r}") from e

        if r.status_code >= 300:
            raise CatalogError(f"Catalog returned {r.status_code} for {url!r}")
        try:
            data = r.json()
        except ValueError as e:
            raise CatalogError(f"Catalog returned invalid JSON for {url!r}") from e
        if not isinstance(data, dict):
            raise CatalogError(f"Catalog returned {type(data).__name__} for {url!r}, expected object")
        return data


class LocalCatalog:
    """Same interface as ModelCatalog, reads both documents from disk"""

    def __init__(self, *, thing_path: str, mapping_path: str) -> None:
        self.thing_path = thing_path
        self.mapping_path = mapping_path

    def fetch_thing_shape(self, model: ModelRef) -> Dict[str, Any]:
        return self._load(self.thing_path)

    def fetch_mapping(self, model: ModelRef, mapping: str) -> Dict[str, Any]:
        return self._load(self.mapping_path)

    def close(self) -> None:
        return

    @staticmethod
    def _load(path: str) -> Dict[str, Any]:
        logger.debug("Reading %r", path)
        try:
            return load_document(path).raw
        except (OSError, ValueError) as e:
            raise CatalogError(f"Can not load {path!r}: {e}") from e

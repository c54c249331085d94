#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import re
import uuid
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from twin.plc_ditto.lib.constants import (
    DEFAULT_CATALOG_URL,
    DEFAULT_DITTO_ENDPOINT,
    DEFAULT_MAPPING,
    DEFAULT_MODEL_NAME,
    DEFAULT_MODEL_VERSION,
    DEFAULT_NAMESPACE,
    DEFAULT_PASSWORD,
    DEFAULT_USERNAME,
    DEFAULT_WORKERS,
    DITTO_WS_PATH,
    READ_TIMEOUT,
)

from .bridge.models import ModelRef, TwinIdentity

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class BridgeConfig(BaseModel):
    """
    Runtime configuration of the bridge, built from the command line

    Example:
        BridgeConfig(twin_id="pump-1").thing_id
          -> "org.apache.plc4x.examples:pump-1"
    """

    namespace: str = DEFAULT_NAMESPACE
    model_name: str = DEFAULT_MODEL_NAME
    model_version: str = DEFAULT_MODEL_VERSION
    mapping: str = DEFAULT_MAPPING
    ditto_endpoint: str = DEFAULT_DITTO_ENDPOINT
    twin_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    username: str = DEFAULT_USERNAME
    password: str = DEFAULT_PASSWORD
    feature_id: Optional[str] = None

    catalog_url: str = DEFAULT_CATALOG_URL
    thing_file: Optional[str] = None
    mapping_file: Optional[str] = None

    workers: int = Field(default=DEFAULT_WORKERS, ge=1)
    read_timeout: float = Field(default=READ_TIMEOUT, gt=0)
    log_level: str = "INFO"

    @field_validator("namespace", "model_name", "model_version", "mapping", "twin_id")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("ditto_endpoint")
    @classmethod
    def _host_only(cls, v: str) -> str:
        # Accept "host", "host:port" and "https://host/"
        host = _SCHEME_RE.sub("", v.strip()).rstrip("/")
        if not host or "/" in host:
            raise ValueError(f"expected a host name, got {v!r}")
        return host

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in _LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(_LOG_LEVELS)}")
        return v

    @model_validator(mode="after")
    def _check_documents(self) -> "BridgeConfig":
        if (self.thing_file is None) != (self.mapping_file is None):
            raise ValueError("thing_file and mapping_file must be given together")
        # Raises ValueError on a malformed namespace / twin id
        TwinIdentity(namespace=self.namespace, twin_id=self.twin_id)
        return self

    @property
    def model_ref(self) -> ModelRef:
        return ModelRef(self.namespace, self.model_name, self.model_version)

    @property
    def twin(self) -> TwinIdentity:
        return TwinIdentity(namespace=self.namespace, twin_id=self.twin_id)

    @property
    def thing_id(self) -> str:
        return self.twin.thing_id

    @property
    def effective_feature_id(self) -> str:
        return self.feature_id or self.model_name.lower()

    @property
    def ditto_http_url(self) -> str:
        return f"https://{self.ditto_endpoint}"

    @property
    def ditto_ws_url(self) -> str:
        return f"wss://{self.ditto_endpoint}{DITTO_WS_PATH}"

    @property
    def uses_local_documents(self) -> bool:
        return self.thing_file is not None

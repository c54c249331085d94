#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import logging
import signal
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple

import httpx

from twin.plc_ditto.lib.catalog import CatalogError, LocalCatalog, ModelCatalog
from twin.plc_ditto.lib.constants import HTTP_TIMEOUT, LOG_DATEFMT, LOG_FORMAT, ExitCode

from .bridge.mapping_resolver import MappingError, resolve_property_specs
from .bridge.models import PropertySpec
from .config import BridgeConfig
from .downstream.manager import DriverManager
from .provisioner import ProvisioningError, TwinProvisioner
from .publisher import ValuePublisher
from .reader import ProtocolReader
from .supervisor import TaskSupervisor
from .upstream import UpstreamState
from .upstream.base import BaseUpstreamAdapter, UpstreamUnavailableError
from .upstream.ditto_ws.adapter import DittoWebSocketAdapter

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT, force=True)
    logging.captureWarnings(True)


@dataclass(frozen=True)
class BootstrapResult:
    thing_id: str
    specs: Tuple[PropertySpec, ...]
    provisioning_status: int


class AppContext:
    """
    Runtime objects of one bridge process, created by serve()

      - stop_event - set by SIGINT/SIGTERM, wakes the main coroutine for shutdown
      - upstream   - live Ditto connection shared by all poll tasks
      - supervisor - owns the poll tasks
    """

    def __init__(self, cfg: BridgeConfig) -> None:
        self.cfg = cfg
        self.stop_event: asyncio.Event = asyncio.Event()
        self.upstream: Optional[BaseUpstreamAdapter] = None
        self.executor: Optional[ThreadPoolExecutor] = None
        self.supervisor: Optional[TaskSupervisor] = None

    def request_stop(self, sig: Optional[signal.Signals] = None) -> None:
        """Idempotent: repeated signals after the first one do nothing"""
        if sig is not None:
            ts = time.strftime(LOG_DATEFMT)
            logger.warning("Signal %r received at %r - shutting down...", sig.name, ts)
        if not self.stop_event.is_set():
            self.stop_event.set()


def _make_catalog(cfg: BridgeConfig, http_client: Optional[httpx.Client]):
    if cfg.uses_local_documents:
        return LocalCatalog(thing_path=cfg.thing_file, mapping_path=cfg.mapping_file)
    return ModelCatalog(base_url=cfg.catalog_url, client=http_client)


def bootstrap(cfg: BridgeConfig, *, http_client: Optional[httpx.Client] = None) -> BootstrapResult:
    """
    Everything that must succeed before the first poll task is scheduled:
    fetch documents -> resolve mapping -> create the twin

    Raises CatalogError, MappingError or ProvisioningError
    """
    model = cfg.model_ref
    catalog = _make_catalog(cfg, http_client)
    try:
        logger.info("Loading model %s (mapping %r)", model.catalog_id, cfg.mapping)
        thing_shape = catalog.fetch_thing_shape(model)
        mapping_doc = catalog.fetch_mapping(model, cfg.mapping)
    finally:
        if http_client is None:
            catalog.close()

    specs = resolve_property_specs(mapping_doc, model)

    provisioner = TwinProvisioner(
        base_url=cfg.ditto_http_url,
        username=cfg.username,
        password=cfg.password,
        client=http_client,
        timeout=HTTP_TIMEOUT,
    )
    try:
        status = provisioner.ensure_twin(cfg.twin, thing_shape)
    finally:
        if http_client is None:
            provisioner.close()

    return BootstrapResult(thing_id=cfg.thing_id, specs=specs, provisioning_status=status)


async def serve(
    cfg: BridgeConfig,
    specs: Tuple[PropertySpec, ...],
    *,
    upstream: Optional[BaseUpstreamAdapter] = None,
    drivers: Optional[DriverManager] = None,
    clock=None,
    ctx: Optional[AppContext] = None,
) -> ExitCode:
    """
    Connect to Ditto, run one poll task per property until stop is requested
    """
    ctx = ctx or AppContext(cfg)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, ctx.request_stop, sig)
        except (NotImplementedError, RuntimeError):
            # Not available outside the main thread / on some platforms
            logger.debug("Signal handler for %s not installed", sig.name)

    ctx.upstream = upstream or DittoWebSocketAdapter(
        url=cfg.ditto_ws_url,
        username=cfg.username,
        password=cfg.password,
    )

    async def on_state_change(state: UpstreamState) -> None:
        if state == UpstreamState.UNAVAILABLE:
            logger.warning(">>> Ditto connection lost, updates will fail until restart <<<")

    ctx.upstream.register_state_handler(on_state_change)

    try:
        await ctx.upstream.start()
    except UpstreamUnavailableError as e:
        logger.error("Can not open live connection to Ditto: %s", e)
        return ExitCode.UPSTREAM_ERROR

    # NOTE: Startup order matters:
    #       - live connection first, publishers need it READY
    #       - poll tasks last, the first tick fires one interval later
    ctx.executor = ThreadPoolExecutor(max_workers=cfg.workers, thread_name_prefix="source-read")
    try:
        reader = ProtocolReader(
            drivers or DriverManager.default(),
            executor=ctx.executor,
            timeout=cfg.read_timeout,
        )
        publisher = ValuePublisher(ctx.upstream, cfg.twin, cfg.effective_feature_id)
        ctx.supervisor = TaskSupervisor(reader=reader, publisher=publisher, clock=clock)
        for spec in specs:
            ctx.supervisor.register(spec)
        ctx.supervisor.start()
        logger.info("Bridge running for %s (feature %r)", cfg.thing_id, cfg.effective_feature_id)

        await ctx.stop_event.wait()
        logger.info("Shutdown signal received")
    finally:
        await _shutdown(ctx)

    return ExitCode.SUCCESS


async def _shutdown(ctx: AppContext) -> None:
    # Poll tasks first so no new updates are produced, then the connection
    if ctx.supervisor is not None:
        await ctx.supervisor.stop()
    if ctx.upstream is not None:
        await ctx.upstream.stop()
    if ctx.executor is not None:
        ctx.executor.shutdown(wait=False, cancel_futures=True)
    logger.info("Shutdown complete")


ServeFn = Callable[[BridgeConfig, Tuple[PropertySpec, ...]], Awaitable[ExitCode]]


def run(
    cfg: BridgeConfig,
    *,
    http_client: Optional[httpx.Client] = None,
    serve_fn: Optional[ServeFn] = None,
) -> ExitCode:
    """Bootstrap synchronously, then run the event loop. Returns the process exit code"""
    try:
        boot = bootstrap(cfg, http_client=http_client)
    except CatalogError as e:
        logger.error("Can not load model documents: %s", e)
        return ExitCode.CATALOG_ERROR
    except MappingError as e:
        logger.error("Invalid mapping: %s", e)
        return ExitCode.MAPPING_ERROR
    except ProvisioningError as e:
        logger.error("%s", e)
        return ExitCode.PROVISIONING_ERROR
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return ExitCode.INIT_ERROR

    if not boot.specs:
        logger.warning("No mapped properties, nothing to poll")

    serve_fn = serve_fn or serve
    try:
        return asyncio.run(serve_fn(cfg, boot.specs))
    except KeyboardInterrupt:
        logger.warning("Interrupted by user (Ctrl+C)")
        return ExitCode.SUCCESS

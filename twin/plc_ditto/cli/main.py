#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import argparse
import logging
import os
import sys
from typing import List, Optional

from pydantic import ValidationError

from twin.plc_ditto.client.config import BridgeConfig
from twin.plc_ditto.client.main import run, setup_logging
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
    ENV_DITTO_PASSWORD,
    ENV_DITTO_USERNAME,
    READ_TIMEOUT,
    ExitCode,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="plc-ditto-bridge",
        description="Poll PLC data points and forward their values to an Eclipse Ditto twin",
        epilog="""
Example:
  plc-ditto-bridge --twin-id pump-1 --mapping demoSpsPragmatics
  plc-ditto-bridge --thing-file thing.json --mapping-file mapping.json --log-level DEBUG
""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    model = parser.add_argument_group("model")
    model.add_argument("-n", "--namespace", default=DEFAULT_NAMESPACE, help="Model and twin namespace (default: %(default)s)")
    model.add_argument("-m", "--model-name", default=DEFAULT_MODEL_NAME, help="Model name (default: %(default)s)")
    model.add_argument("-v", "--model-version", default=DEFAULT_MODEL_VERSION, help="Model version (default: %(default)s)")
    model.add_argument("-p", "--mapping", default=DEFAULT_MAPPING, help="Mapping name in the catalog (default: %(default)s)")
    model.add_argument("--catalog-url", default=DEFAULT_CATALOG_URL, help="Model catalog base URL (default: %(default)s)")
    model.add_argument("--thing-file", default=None, help="Read the thing shape from a local JSON file")
    model.add_argument("--mapping-file", default=None, help="Read the mapping content from a local JSON file")

    ditto = parser.add_argument_group("ditto")
    ditto.add_argument("-d", "--ditto-endpoint", default=DEFAULT_DITTO_ENDPOINT, help="Ditto host (default: %(default)s)")
    ditto.add_argument("-t", "--twin-id", default=None, help="Twin id (default: random UUID)")
    ditto.add_argument("--feature-id", default=None, help="Feature receiving the values (default: model name in lower case)")
    ditto.add_argument(
        "--username",
        default=os.environ.get(ENV_DITTO_USERNAME, DEFAULT_USERNAME),
        help=f"Ditto user (env {ENV_DITTO_USERNAME})",
    )
    ditto.add_argument(
        "--password",
        default=os.environ.get(ENV_DITTO_PASSWORD, DEFAULT_PASSWORD),
        help=f"Ditto password (env {ENV_DITTO_PASSWORD})",
    )

    runtime = parser.add_argument_group("runtime")
    runtime.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="Parallel source reads (default: %(default)s)")
    runtime.add_argument("--read-timeout", type=float, default=READ_TIMEOUT, help="Seconds per source read (default: %(default)s)")
    runtime.add_argument(
        "--log-level",
        default="INFO",
        type=str.upper,
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Log level (default: %(default)s)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> BridgeConfig:
    values = {
        "namespace": args.namespace,
        "model_name": args.model_name,
        "model_version": args.model_version,
        "mapping": args.mapping,
        "ditto_endpoint": args.ditto_endpoint,
        "username": args.username,
        "password": args.password,
        "feature_id": args.feature_id,
        "catalog_url": args.catalog_url,
        "thing_file": args.thing_file,
        "mapping_file": args.mapping_file,
        "workers": args.workers,
        "read_timeout": args.read_timeout,
        "log_level": args.log_level,
    }
    # Omitted twin id -> random one from the model default factory
    if args.twin_id is not None:
        values["twin_id"] = args.twin_id
    return BridgeConfig(**values)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = config_from_args(args)
    except ValidationError as e:
        parser.print_usage(sys.stderr)
        for err in e.errors():
            loc = ".".join(str(p) for p in err["loc"]) or "config"
            print("%s: error: %s: %s" % (parser.prog, loc, err["msg"]), file=sys.stderr)
        return ExitCode.INIT_ERROR

    setup_logging(cfg.log_level)
    exit_code = run(cfg)
    if exit_code != ExitCode.SUCCESS:
        logger.warning("Bridge stopped with error code %d (%s)", exit_code, exit_code.name)
    return int(exit_code)


if __name__ == "__main__":
    sys.exit(main())

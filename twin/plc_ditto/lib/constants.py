"""
  File with all constants in project
"""
from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes for the bridge and its CLI"""
    SUCCESS = 0
    GEN_ERROR = 1  # Unexpected errors
    INIT_ERROR = 2  # Bad arguments / configuration (argparse uses 2 as well)
    CATALOG_ERROR = 3  # Model or mapping document could not be fetched
    MAPPING_ERROR = 4  # Mapping document can not be turned into poll tasks
    PROVISIONING_ERROR = 5  # Twin does not exist and could not be created
    UPSTREAM_ERROR = 6  # Live connection to Ditto failed


# CLI defaults
DEFAULT_NAMESPACE = "org.apache.plc4x.examples"
DEFAULT_MODEL_NAME = "VirtualMachine"
DEFAULT_MODEL_VERSION = "1.0.0"
DEFAULT_MAPPING = "demoSpsPragmatics"
DEFAULT_DITTO_ENDPOINT = "twin.pragmaticindustries.de"
DEFAULT_CATALOG_URL = "https://vorto.eclipse.org"
DEFAULT_USERNAME = "mqtt"
DEFAULT_PASSWORD = "mqtt"
# Environment variables overriding the credential defaults
ENV_DITTO_USERNAME = "DITTO_USERNAME"
ENV_DITTO_PASSWORD = "DITTO_PASSWORD"

# Catalog (Eclipse Vorto) REST paths, formatted with ModelRef.catalog_id
CATALOG_THING_PATH = "/api/v1/generators/eclipseditto/models/{model_id}"
CATALOG_MAPPING_PATH = "/api/v1/models/{model_id}/content/{mapping}"

# Ditto
DITTO_THINGS_PATH = "/api/2/things/{thing_id}"
DITTO_WS_PATH = "/ws/2"
CONFIGURATION_PREFIX = "configuration/"

# Timeouts (seconds)
READ_TIMEOUT = 5.0
HTTP_TIMEOUT = 10.0
WS_CONNECT_TIMEOUT = 10.0
WS_ACK_TIMEOUT = 10.0  # Ditto answer to one modify command

# Bounded pool for blocking source reads
DEFAULT_WORKERS = 4

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

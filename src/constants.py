"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    CONFIG_ERROR = 3
    RESOLUTION_ERROR = 4


class Languages(Enum):
    """Source languages an edition set can be planned for.

    Args:
        Enum (string): Source languages.
    """

    ESNEXT = "esnext"
    TYPESCRIPT = "typescript"
    COFFEESCRIPT = "coffeescript"
    JSON = "json"


class EnginesPolicy(Enum):
    """How the manifest-visible engines.node declaration is computed.

    Args:
        Enum (string): Engines policies.
    """

    EXACT = "exact"
    FLOOR = "floor"
    EXPAND = "expand"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    RELEASE_SCHEDULE_URL = (
        "https://raw.githubusercontent.com/nodejs/Release/main/schedule.json"
    )
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVEL_ENV = "EDITIONER_LOG_LEVEL"
    RESOLVE = "[RESOLVE]"

    MANIFEST_FILE = "package.json"
    CONFIG_FILE = ".editioner.yml"
    TSCONFIG_FILE = "tsconfig.json"

    # Dialect ratification: yearly editions land in June, ES5 landed December 2009
    DIALECT_RATIFICATION_MONTH = 6
    DIALECT_FIRST_YEARLY = 2015
    DIALECT_ES5_RATIFIED = (2009, 12)

    # Node.js major version from which native ESM is assumed
    ESM_MINIMUM_NODE_VERSION = "14"

    # Runtime probing
    PROBE_INSTALL_TEMPLATE = "fnm install {version}"
    PROBE_RUN_TEMPLATE = "fnm exec --using={version} -- {command}"
    PROBE_MAX_CONCURRENCY = 4
    PROBE_TIMEOUT_SEC = None
    SERIAL_PROJECTS = ["testen", "safefs", "lazy-require"]

    RESOLVER_MAX_CYCLES = 5
    ENGINES_POLICY = EnginesPolicy.EXACT.value

    # Edition layout
    BROWSER_EDITION_DIRECTORY = "edition-browsers"
    TYPES_EDITION_DIRECTORY = "compiled-types"
    COMPILED_EDITION_PREFIX = "edition-"
    IMPORT_EDITION_SUFFIX = "-esm"
    DEFAULT_SOURCE_DIRECTORY = "source"
    DEFAULT_BROWSERS = "defaults"
    AUTOLOADER_DEPENDENCY = "editions"

"""Runtime release catalog.

- models.py: RuntimeRelease and DialectVersion records
- schedule.py: release schedule fetch and parsing
- dialects.py: dialect ratification rules
- versions.py: version comparison and major-version helpers
- cache.py: single-flight cache owning the fetched table
- service.py: VersionCatalog queries
"""

from .cache import SingleFlightCache
from .models import DialectVersion, RuntimeRelease
from .schedule import fetch_release_schedule, parse_release_schedule
from .service import VersionCatalog

__all__ = [
    "DialectVersion",
    "RuntimeRelease",
    "SingleFlightCache",
    "VersionCatalog",
    "fetch_release_schedule",
    "parse_release_schedule",
]

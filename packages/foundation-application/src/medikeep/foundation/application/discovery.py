"""Entry-point-based auto-discovery.

Loads contributions that installed MediKeep packages declare under the
``medikeep.*`` entry point groups.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib.metadata import entry_points
from typing import Any

logger = logging.getLogger(__name__)

GROUP_ROUTERS = "medikeep.routers"
GROUP_MIDDLEWARE = "medikeep.middleware"
GROUP_ERROR_HANDLERS = "medikeep.error_handlers"
GROUP_LIFESPAN = "medikeep.lifespan"

ALL_GROUPS = frozenset({GROUP_ROUTERS, GROUP_MIDDLEWARE, GROUP_ERROR_HANDLERS, GROUP_LIFESPAN})


@dataclass(frozen=True, slots=True)
class DiscoveredContribution:
    """A loaded entry point.

    Attributes:
        name: Entry point name (e.g. ``"spaces"``).
        group: Entry point group (e.g. ``"medikeep.routers"``).
        value: The loaded object.
    """

    name: str
    group: str
    value: Any


def discover(
    group: str,
    *,
    exclude_names: frozenset[str] = frozenset(),
) -> list[DiscoveredContribution]:
    """Load every entry point of ``group``.

    Entry points that fail to import are logged and skipped so one broken
    package cannot keep the service from starting.

    Args:
        group: Entry point group name.
        exclude_names: Entry point names to skip.

    Returns:
        Successfully loaded contributions, in installation order.
    """
    contributions: list[DiscoveredContribution] = []

    for ep in entry_points(group=group):
        if ep.name in exclude_names:
            logger.debug("entry_point_excluded", extra={"group": group, "entry_point": ep.name})
            continue
        try:
            loaded = ep.load()
        except Exception:
            logger.exception(
                "entry_point_load_failed", extra={"group": group, "entry_point": ep.name}
            )
            continue
        contributions.append(DiscoveredContribution(name=ep.name, group=group, value=loaded))

    logger.info("entry_points_discovered", extra={"group": group, "count": len(contributions)})
    return contributions

"""Component identity for the filesystem blob substrate resource."""

from __future__ import annotations

RESOURCE_COMPONENT_ID = "substrate_filesystem"

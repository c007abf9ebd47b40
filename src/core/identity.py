"""Node identity assignment."""

from __future__ import annotations

import uuid


def new_node_id() -> str:
    """Return a fresh, globally unique node id.

    Ids are random (uuid4): two runs over the same facts never share ids, so
    a new snapshot can be written before the old one is gone without clashes.
    """

    return str(uuid.uuid4())

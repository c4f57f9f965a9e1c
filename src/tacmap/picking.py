from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np

from tacmap.entities import TrackedEntity
from tacmap.geo.coords import ViewportState
from tacmap.geo.projection import Projector

DEFAULT_THRESHOLD_PX = 15.0


def pixel_distances(pointer: Tuple[float, float], entities: Sequence[TrackedEntity],
                    viewport: ViewportState, size: Tuple[float, float],
                    projector: Optional[Projector] = None) -> np.ndarray:
    """Euclidean pixel distance from pointer to every entity, in drawn (tilted) space."""
    if not entities:
        return np.zeros(0, dtype=np.float64)
    projector = projector or Projector()
    xy = projector.project_coords([e.position for e in entities], viewport, size)
    p = np.asarray(pointer, dtype=np.float64).reshape(1, 2)
    return np.linalg.norm(xy - p, axis=1)


def pick_entity(pointer: Tuple[float, float], entities: Sequence[TrackedEntity],
                viewport: ViewportState, size: Tuple[float, float],
                threshold_px: float = DEFAULT_THRESHOLD_PX,
                projector: Optional[Projector] = None) -> Optional[TrackedEntity]:
    """Nearest entity within threshold_px of pointer, or None. Ties go to the first one."""
    w, h = size
    if not entities or not (w > 0 and h > 0) or threshold_px <= 0:
        return None
    d = pixel_distances(pointer, entities, viewport, size, projector)
    i = int(np.argmin(d))  # first occurrence on ties
    return entities[i] if d[i] <= threshold_px else None

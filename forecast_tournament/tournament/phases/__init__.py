"""Phase pipeline.

- Phase 0: sanity filter against baselines
- Phase 1: relative performance (percentile) filter
- Phase 2: stability and regret filter
- Phase 3: composite ranking, no elimination
"""

from __future__ import annotations

__all__: list[str] = []

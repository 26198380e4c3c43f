from typing import List, Sequence, Tuple

from dashboard.core.aggregators import round1
from dashboard.models.metrics import FunnelStep


def build_funnel(steps: Sequence[Tuple[str, int]]) -> List[FunnelStep]:
    """Annotate ordered ``(name, count)`` steps with percentage-of-top and drop-off.

    All counts of one funnel must use the same unit (events or unique users).
    """
    if not steps:
        return []

    base = steps[0][1] or 1
    funnel = [FunnelStep(name=steps[0][0], count=steps[0][1], percentage=100, dropoff=0)]
    for (_, previous), (name, count) in zip(steps, steps[1:]):
        funnel.append(FunnelStep(
            name=name,
            count=count,
            percentage=round1(100 * count / base),
            dropoff=round1(100 * max(0, previous - count) / max(previous, 1)),
        ))
    return funnel


def funnel_rows(steps: Sequence[Tuple[str, int]]) -> List[dict]:
    return [step.model_dump() for step in build_funnel(steps)]

from typing import Optional

NEW = None


def trend(current: float, previous: float) -> Optional[float]:
    """Signed percent change versus the prior period.

    Returns ``NEW`` (``None``, rendered as "New") when the prior period was
    zero and the current one is not. Rounding is left to the presentation
    layer.
    """
    if previous > 0:
        return (current - previous) / previous * 100
    if current > 0:
        return NEW
    return 0.0

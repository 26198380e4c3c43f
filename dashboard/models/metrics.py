from typing import Optional

from pydantic import BaseModel


class FunnelStep(BaseModel):
    name: str
    count: int
    percentage: float
    dropoff: float


class UserBreakdown(BaseModel):
    total: int
    visitors: int
    authenticated: int
    subscribers: int


class Retention(BaseModel):
    day1: float
    day7: float
    day30: float
    totalNewUsers: int


class MetricsQuery(BaseModel):
    range: str = "30d"
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    platform: str = "all"
    user_type: str = "all"

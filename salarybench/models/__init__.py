from salarybench.models.compensation import CompensationData
from salarybench.models.rate_limit import RateLimitRecord

__all__ = ["CompensationData", "RateLimitRecord"]

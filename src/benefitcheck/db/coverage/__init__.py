"""Coverage details and per-code benefit rows."""

from benefitcheck.db.coverage.model import (
    VERIFIED_BY_API,
    CoverageByCode,
    CoverageDetail,
    Procedure,
)

__all__ = ["VERIFIED_BY_API", "CoverageByCode", "CoverageDetail", "Procedure"]

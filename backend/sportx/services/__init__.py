"""Domain services built on top of reactive state containers."""

from .betslip_service import BetslipService
from .sport_service import CatalogFetchError, CatalogSource, SportService

__all__ = [
    "BetslipService",
    "CatalogFetchError",
    "CatalogSource",
    "SportService",
]

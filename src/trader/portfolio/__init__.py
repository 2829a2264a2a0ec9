"""Portfolio valuation and peak tracking."""

from trader.portfolio.tracker import PortfolioTracker

__all__ = ["PortfolioTracker"]

"""Typed errors raised by the feed planner core."""


class FeedPlannerError(Exception):
    """Base class for all feed planner errors."""


class ValidationError(FeedPlannerError):
    """Input violates a domain rule (quantities, dates, feed amounts)."""


class NotFoundError(FeedPlannerError):
    """A referenced ingredient, requirement, formulation or animal is unknown."""

class BusinessRuleError(ValueError):
    """A request that is well formed but breaks a bookkeeping rule (HTTP 400)."""


class ConflictError(Exception):
    """The request clashes with existing data, e.g. a duplicate number or a referenced row (HTTP 409)."""

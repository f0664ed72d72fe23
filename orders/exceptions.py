# orders/exceptions.py

from typing import Optional


class SchedulingError(Exception):
    """Base class for scheduling engine errors."""
    pass


class ProductConfigError(SchedulingError, ValueError):
    """
    Raised when a product's pipeline/scheduling configuration cannot be used.
    This is the only error that halts a scheduling pass.
    """
    def __init__(self, message: str, *, product_id: Optional[str] = None):
        super().__init__(message)
        self.product_id = product_id


class MalformedOrderError(SchedulingError):
    """Raised for a single order whose snapshot data cannot be interpreted."""
    def __init__(self, message: str, *, wo_id: Optional[str] = None):
        super().__init__(message)
        self.wo_id = wo_id

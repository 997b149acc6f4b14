"""Read-only selectors."""

from yearend_kernel.selectors.base import BaseSelector
from yearend_kernel.selectors.result_selector import ResultSelector

__all__ = ["BaseSelector", "ResultSelector"]

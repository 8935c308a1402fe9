"""
Shared computational utilities.
"""

from pysumm.core.compute.timing import Timer

__all__ = ["Timer"]

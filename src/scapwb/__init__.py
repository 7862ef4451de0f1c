"""
SCAP Workbench local scanner (scapwb)

Supervises local `oscap` compliance scans: capability probing, privileged
invocation, cooperative cancellation and collection of the result, report
and ARF artifacts the tool produces.
"""

from scapwb.version import __version__

__all__ = ["__version__"]

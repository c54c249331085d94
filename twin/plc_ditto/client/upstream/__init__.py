# upstream/__init__.py

"""
Upstream adapters

Upstream = "northbound" side of the bridge (digital twin store)
"""

from .types import UpstreamState

__all__ = ["UpstreamState"]

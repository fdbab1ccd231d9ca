"""
chainsync - periodic chain synchronization scheduler.

Runs named recurring jobs against every known (chain, network) pair and
keeps data-source endpoint weights in line with their observed health.
"""

__version__ = "0.1.0"

"""
LAN Survey

Periodic survey of local network segments: finds live hosts, names and
fingerprints them with lightweight probes, and keeps a CSV inventory
up to date.
"""

__version__ = "1.0.0"
__author__ = "LAN Survey Team"

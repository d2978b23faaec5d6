"""Passive discovery of unconfigured iLO management processors.

Watches DHCP client broadcasts on the local segment and reports every
device whose vendor class identifies it as an iLO subsystem.
"""

__version__ = "0.3.0"

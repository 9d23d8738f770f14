"""
dhcping - DHCP server reachability probe

Sends a relay-style DHCPDISCOVER to a DHCP server and reports whether
anything answered before the deadline. Intended for operators checking
that a server is alive and reachable from a given host.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

__version__ = "0.1.0"
__author__ = "DNS Science.io"
__copyright__ = "Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company"

"""
knockwatch
==========

Port knocking monitor: watches TCP connection attempts per client and runs
the command bound to a knock sequence once a client completes it.
"""

__version__ = "0.1.0"

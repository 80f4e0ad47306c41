"""
warmpath - relationship intelligence core.

Builds a per-tenant graph of people and weighted relationships and finds
the best warm introduction chains to a target person.
"""

__version__ = "0.1.0"

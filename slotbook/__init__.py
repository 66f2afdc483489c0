"""
slotbook - service booking with slot availability and conflict-checked writes.
"""

__version__ = "0.3.0"

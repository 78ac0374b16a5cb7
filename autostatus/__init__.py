"""Auto build status skill: framed socket channel + slot-filling dialog."""

__version__ = "0.1.0"

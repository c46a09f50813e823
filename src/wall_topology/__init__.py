"""Wall assembly and room topology engine for HVAC floor plans."""

__version__ = "0.1.0"

"""Console Buddy - a terminal chat agent that works on your project through tools."""

__version__ = "0.1.0"

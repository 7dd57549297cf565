"""Lead management and call-outcome console"""

__version__ = "1.0.0"

"""Promptsmith - prompt optimization pipeline"""

__version__ = "0.1.0"

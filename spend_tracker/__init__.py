"""Tooling spend tracker - reconciles card transactions against a vendor budget registry"""

__version__ = "0.1.0"

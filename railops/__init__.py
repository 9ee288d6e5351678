"""Railway operations decision-support dashboard."""
__version__ = "0.1.0"

"""Leave Filing and Approval Platform."""
__version__ = "1.0.0"

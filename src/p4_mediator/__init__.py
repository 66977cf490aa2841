"""p4-mediator - Perforce workspace routing and file operation mediation."""

__version__ = "0.1.0"

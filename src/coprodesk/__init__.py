"""coprodesk: condominium ticketing service."""

__version__ = "0.1.0"

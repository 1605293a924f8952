"""OfferDesk: rental offer lifecycle and owner-inbox notifications."""

__version__ = "0.1.0"

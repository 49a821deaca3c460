"""rendezvous: distributed rendezvous barrier over a coordination service."""

__version__ = "0.1.0"

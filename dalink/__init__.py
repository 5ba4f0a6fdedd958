"""Data availability client interfaces, a Celestia client, health events and gas estimation."""

__version__ = "0.1.0"

__all__ = ["celestia", "celestia_config", "celestia_types", "da", "fees", "pubsub"]
"""
Storage module - Bundled asset provisioning.
"""

from whisperdesk.services.storage.assets import AssetStore

__all__ = ["AssetStore"]

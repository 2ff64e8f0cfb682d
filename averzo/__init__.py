"""AVERzO storefront data-access and AI flow service."""

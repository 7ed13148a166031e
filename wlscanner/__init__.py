"""Parse and check Wayland protocol XML descriptions; observable signals."""

__version__ = "1.0.0"
__all__ = ["protocol", "signals"]
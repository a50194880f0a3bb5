"""Protocol Buffers wire-format primitives: varints, field codecs, messages and wrappers."""

__version__ = "0.7.0"

__all__ = ["errors", "wire", "scalars", "lengthdelim", "message", "maps", "wrappers"]
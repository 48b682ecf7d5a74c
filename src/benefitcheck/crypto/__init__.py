"""Field-level authenticated encryption."""

from benefitcheck.crypto.service import CryptoService, FieldKind, mask

__all__ = ["CryptoService", "FieldKind", "mask"]

"""Cross Industry Invoice (CII D16B) Serialisierung."""

from .generator import build_facturx_tree, build_facturx_xml

__all__ = ["build_facturx_tree", "build_facturx_xml"]

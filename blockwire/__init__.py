"""Varint and packet codecs, packet framing, chat text, slabs, settings and login helpers."""

__version__ = "0.1.0"
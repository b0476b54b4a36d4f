"""Strings for exercising a server's input handling."""
from __future__ import annotations

# Accented Latin letters, upper and lower case.
NONASCII_STRING = "ÁÉÍÓÚÄËÏÖÜÂÊÎÔÛÀÈÌÒÙÑÇáéíóúäëïöüâêîôûàèìòùñç"

# Characters that commonly break naive escaping (HTML, URLs, SQL, shells).
INJECTION_STRING = "<>{}()[]%&'\"=\\/?*.,;"

__all__ = ["NONASCII_STRING", "INJECTION_STRING"]

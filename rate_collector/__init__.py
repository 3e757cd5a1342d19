"""
Coletor de taxas de câmbio USD/PEN.
Raspagem progressiva de casas de câmbio com agregação, histórico e API.
"""

__version__ = "1.0.0"

"""
Legal-Agent - a legal assistant specialised in Japanese law.
"""

__version__ = "1.0.0"

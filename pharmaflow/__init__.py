"""
PharmaFlow order lifecycle and inventory reservation service
"""
__version__ = "1.0.0"

"""
Schema Graph - draws tables and their foreign keys from database metadata
"""
__version__ = "0.1.0"

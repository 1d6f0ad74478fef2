"""Survey Answer Engine Core"""
__version__ = "0.1.0"

"""Backend API for the clinic website"""

__version__ = "1.0.0"

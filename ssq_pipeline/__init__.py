"""
Standard-format pipeline for the Santo Stefano Quisquina (Sicily) great and
blue tit nest-box population.
"""

__version__ = "0.1.0"

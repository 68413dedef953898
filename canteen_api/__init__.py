"""Campus canteen ordering with payment reconciliation"""

__version__ = "1.0.0"

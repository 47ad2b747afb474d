"""
Restaurant Sales Dashboard

Backend for the sales dashboard: reconciles in-store POS transactions with
online (Bite) orders into revenue, order, trend, product and activity views.
"""

__version__ = "1.0.0"

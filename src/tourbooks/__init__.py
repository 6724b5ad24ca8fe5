"""
tourbooks - accounting core of a travel-agency back office.

Cash-book and bank-book statements, TDS rate resolution and challan
tracking.
"""

__version__ = "0.1.0"

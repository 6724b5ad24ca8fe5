"""
tourbooks Parsers - cash-book and bank-book file loaders.
"""

from tourbooks.parsers.book_file import load_book_transactions, map_columns

__all__ = [
    "load_book_transactions",
    "map_columns",
]

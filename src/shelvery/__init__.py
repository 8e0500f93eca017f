# ABOUTME: Shelvery - multi-provider catalog discovery for collectable media.
# ABOUTME: Queries movie, TV, game, and book metadata APIs and merges them into one record.

__version__ = "0.1.0"

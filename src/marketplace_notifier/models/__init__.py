from .listing import LISTING_URL, ListingRecord, normalize_node, parse_price

__all__ = ["LISTING_URL", "ListingRecord", "normalize_node", "parse_price"]

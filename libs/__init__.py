from .decimals import round_half_up
from .strings import levenshtein_distance, normalize_header, similarity_ratio

__all__ = [
    "levenshtein_distance",
    "normalize_header",
    "round_half_up",
    "similarity_ratio",
]

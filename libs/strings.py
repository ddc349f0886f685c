def normalize_header(header: str) -> str:
    """Normalize header name by stripping and lowercasing.

    Used to normalize CSV column headers for consistent mapping.

    Args:
        header: Raw header string from import file

    Returns:
        Lowercase, stripped header string

    Example:
        >>> normalize_header("  Officer Name  ")
        "officer name"
    """
    if not header:
        return ""
    return str(header).strip().lower()


def levenshtein_distance(first: str, second: str) -> int:
    """Return the edit distance between two strings.

    Insertions, deletions and substitutions all cost 1. Python strings index
    by code point, so Devanagari matras and other combining characters count
    as single units.

    Example:
        >>> levenshtein_distance("सीमांकन", "सीमाकन")
        1
    """
    if first == second:
        return 0
    if not first:
        return len(second)
    if not second:
        return len(first)

    previous_row = list(range(len(second) + 1))
    for i, first_char in enumerate(first, start=1):
        current_row = [i]
        for j, second_char in enumerate(second, start=1):
            substitution_cost = 0 if first_char == second_char else 1
            current_row.append(
                min(
                    previous_row[j] + 1,
                    current_row[j - 1] + 1,
                    previous_row[j - 1] + substitution_cost,
                )
            )
        previous_row = current_row
    return previous_row[-1]


def similarity_ratio(first: str, second: str) -> float:
    """Return ``1 - distance / longest length`` for the normalized strings.

    Two empty strings are considered identical.
    """
    first = normalize_header(first)
    second = normalize_header(second)
    longest = max(len(first), len(second))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(first, second)) / longest

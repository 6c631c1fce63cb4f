"""
Delimiter detection for delimited text sources.
"""

from typing import Tuple

# Priority order; earlier candidates win ties.
CANDIDATE_DELIMITERS: Tuple[str, ...] = (',', ';', '\t', '|')


def detect(first_line: str) -> str:
    """
    Pick the field separator used by a delimited text line.

    Args:
        first_line: The first line of the source. Callers rewind the stream
            afterwards so the same line is read again as the key row.

    Returns:
        The candidate with the most occurrences in the line.
    """
    counts = [(delimiter, first_line.count(delimiter)) for delimiter in CANDIDATE_DELIMITERS]
    # sorted() is stable, so equal counts keep the candidate order
    ranked = sorted(counts, key=lambda item: item[1], reverse=True)
    return ranked[0][0]

"""
Input/Output for fossil range data.

This module reads and writes the plain-text tables used by the CLI:

- **Taxa**: name and observed age span (first and last appearance)
- **Ranges**: origination and extinction times per taxon
- **Counts**: fossil counts per taxon and time interval
"""

from fbdrange.io.taxa import Taxon, read_counts, read_ranges, read_taxa, write_ranges

__all__ = ["Taxon", "read_taxa", "read_ranges", "read_counts", "write_ranges"]

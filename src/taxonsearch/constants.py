"""Constants for taxonsearch.

Rewrite tables, display patterns and limits shared by the name normalizer,
the match engine, the result ranker and the formatter.
"""

import re
from typing import Optional, Tuple

# Maximum number of rows returned by a single lookup
MAXIMUM_RESULTS = 20

# Queries shorter than this (after decoding and trimming) return no new rows
MIN_SEARCH_LENGTH = 1

# Below this many rows a vernacular-enabled lookup retries with a broad match
BROAD_MATCH_THRESHOLD = 5

# Upper bound on rewrite rounds while normalizing a name to a fixed point
MAX_NORMALIZE_ROUNDS = 20

# Depth of the single-result broadening recursion (top-level -> genus/parent)
MAX_BROADENING_DEPTH = 1

# Qualifier tie-break order: a qualifier listed earlier sorts after a later one
QUALIFIER_PRIORITY: Tuple[Optional[str], ...] = ('s.s.', '', None, 's.l.', 'agg.')

# Qualifiers rendered with the Latin qualifier style
LATIN_QUALIFIERS = frozenset({'s.s.', 's.l.'})

# Ordered (pattern, replacement) rewrites for rank abbreviations.
# Each entry replaces its first occurrence only, in table order.
TAXON_RANK_NAME_REWRITES: Tuple[Tuple[str, str], ...] = (
    (r'\s+sub-?g(?:en(?:us)?)?[.\s]+', ' subg. '),
    (r'\s+sect(?:ion)?[.\s]+', ' sect. '),
    (r'\s+subsect(?:ion)?[.\s]+', ' subsect. '),
    (r'\s+ser(?:ies)?[.\s]+', ' ser. '),
    (r'\s+gp[.\s]+', ' group '),
    (r'\s+s(?:ub)?-?sp(?:ecies)?[.\s]+', ' subsp. '),
    (r'\s+morphotype\s+', ' morph. '),
    (r'\s+var[.\s]+', ' var. '),
    (r'\s+cv[.\s]+', ' cv. '),
    (r'\s+n(?:otho)?v(?:ar)?[.\s]+', ' nothovar. '),
    (r'\s+f[.\s]+|\s+forma?\s+', ' f. '),
    (r'\s+n(?:otho)?ssp[.\s]+', ' nothosubsp. '),
)

# Ordered (pattern, replacement) rewrites for informal qualifiers.
# Mid-string forms come before their end-of-string equivalents.
TAXON_QUALIFIER_REWRITES: Tuple[Tuple[str, str], ...] = (
    # "f x m or m x f" is the default cross so no explicit qualifier is kept
    (r"\s*\(?\bf\s*x\s*m or m\s*x\s*f\)?\s*$", ' '),
    (r"\s*\(?\bm\s*x\s*f or f\s*x\s*m\)?\s*$", ' '),

    (r"\s*\(?\bf\s*x\s*m\)?\s*$", ' (f x m)'),
    (r"\s*\(?\bm\s*x\s*f\)?\s*$", ' (m x f)'),

    (r"\s*\(?\bfemale\s*x\s*male\)?\s*$", ' (f x m)'),
    (r"\s*\(?\bmale\s*x\s*female\)?\s*$", ' (m x f)'),

    # stand-alone sex qualifier, quotes dropped
    (r"\s*'male'\s*$", ' male'),
    (r"\s*'female'\s*$", ' female'),

    # mid-string
    (r"\b\s*sens\.?\s*lat[.\s]+", ' s.l. '),
    (r"\b\s*s\.\s*lat\.?\s*\b", ' s.l. '),
    (r"\b\s*s\.?\s*l\.?\s+\b", ' s.l. '),
    (r"\b\s*sensu\s*lato\s+\b|\(\s*sensu\s*lato\s*\)", ' s.l. '),

    (r"\b\s*sensu\s*stricto\s+\b|\(\s*sensu\s*stricto\s*\)", ' s.s. '),
    (r"\b\s*sens\.?\s*strict[.\s]+", ' s.s. '),
    # the look-ahead form catches "sens. str." directly before a closing paren
    (r"\b\s*sens\.?\s*str\.?\s*(?=\))|\b\s*sens\.?\s*str[.\s]+", ' s.s. '),
    (r"\b\s*s\.\s*str[.\s]+", ' s.s. '),
    (r"\b\s*s\.?\s*s\.?\s+\b", ' s.s. '),

    # end of string
    (r"\b\s*sens\.?\s*lat\.?\s*$", ' s.l.'),
    (r"\b\s*s\.\s*lat\.?\s*$", ' s.l.'),
    (r"\b\s*s\.?\s*l\.?\s*$", ' s.l.'),
    (r"\b\s*sensu\s*lato\s*$", ' s.l.'),

    (r"\b\s*sensu\s*stricto\s*$", ' s.s.'),
    (r"\b\s*sens\.?\s*strict\.?\s*$", ' s.s.'),
    (r"\b\s*sens\.?\s*str\.?\s*$", ' s.s.'),
    (r"\b\s*s\.\s*str\.?\s*$", ' s.s.'),
    (r"\b\s*s\.?\s*s\.?\s*$", ' s.s.'),

    (r"\b\s*agg\.?\s*$", ' agg.'),
    (r"\b\s*aggregate\s*$", ' agg.'),

    (r"\b\s*sp\.?\s*cultivar\s*$", ' cv. '),
    (r"\b\s*sp\.?\s*cv\.?\s*$", ' cv. '),
    (r"\b\s*cultivars?\s*$", ' cv. '),
    (r"\b\s*cv\s+$", ' cv. '),
    (r"\b\s*cv$", ' cv. '),

    (r"\b\s*cf\s*$", ' cf.'),
    (r"\b\s*aff\s*$", ' aff.'),
    (r"\b\s*s\.?n\.?\s*$", ' sp.nov.'),
    (r"\b\s*sp\.?\s*nov\.?\s*$", ' sp.nov.'),

    (r"\b\s*auct[.\s]*$", ' auct.'),
    (r"\b\s*ined[.\s]*$", ' ined.'),
    (r"\b\s*nom\.?\snud[.\s]*$", ' nom. nud.'),
    (r"\b\s*p\.p[.\s?]*$", ' pro parte'),

    (r"\b\s*spp?\.?[\s?]*$", ''),
    (r"\b\s*species\s*$", ''),
    # e.g. "Ulmus sp. (excluding Ulmus glabra)"
    (r"\b\s*spp?\.?\s*\(", ' ('),
    (r"\b\s*species\s*\(", ' ('),
)

# Rank tokens highlighted by the formatter
RANK_DISPLAY_NAMES = re.compile(
    r'\b(subg\.|sect\.|subsect\.|ser\.|group|subsp\.|morph\.|var\.|nothovar\.|f\.|nothosubsp\.|pv\.)'
)

# Well-formed rank tokens stripped from names before the final sort tie-break
CLEAN_RANK_NAMES = re.compile(
    r'\s(subfam\.|subg\.|sect\.|subsect\.|ser\.|subser\.|subsp\.|nothosubsp\.|microsp\.|praesp\.'
    r'|agsp\.|race|convar\.|nm\.|microgene|f\.|subvar\.|var\.|nothovar\.|cv\.|sublusus|taxon'
    r'|morph\.|group|sp\.)\s'
)

# A stand-alone hybrid "x" inside a name string
HYBRID_MARKER = re.compile(r'\bx\b', re.IGNORECASE)

# Positional columns of the compact raw taxon table
RAW_NAME_STRING = 0
RAW_CANONICAL = 1
RAW_HYBRID_CANONICAL = 2
RAW_ACCEPTED_ENTITY_ID = 3
RAW_QUALIFIER = 4
RAW_AUTHORITY = 5
RAW_VERNACULAR = 6
RAW_VERNACULAR_ROOT = 7
RAW_USED = 8
RAW_MIN_RANK = 9
RAW_PARENT_IDS = 10
RAW_BAD_VERNACULAR = 11

# Canonical-name value in the raw table meaning "same as the name string"
RAW_CANONICAL_SAME_AS_NAME = 0

"""Markup rendering for result rows."""

import html
import re

from taxonsearch.constants import LATIN_QUALIFIERS, RANK_DISPLAY_NAMES
from taxonsearch.types.data_classes import ResultRow

_HYBRID_WORD = re.compile(r'\bx\b')


def _markup_name(name: str) -> str:
    name = _HYBRID_WORD.sub('×', html.escape(name, quote=False))
    return RANK_DISPLAY_NAMES.sub(r'<span class="rank-name">\1</span>', name)


class Formatter:
    """Renders a ResultRow as an HTML fragment.

    Stateless apart from ``show_vernacular``, which controls whether
    vernacular names ever appear in the output.
    """

    def __init__(self, show_vernacular: bool = True):
        self.show_vernacular = show_vernacular

    def format(self, row: ResultRow) -> str:
        """Render one result row."""
        markup = self._name_markup(row)

        if self.show_vernacular and row.vernacular:
            vernacular = html.escape(row.vernacular, quote=False)
            if row.vernacular_matched:
                markup = f'<q><b>{vernacular}</b></q> {markup}'
            else:
                markup = f'{markup} <q class="taxon-vernacular"><b>{vernacular}</b></q>'

        if row.is_synonym:
            markup += self._accepted_markup(row)

        return markup

    def _name_markup(self, row: ResultRow) -> str:
        uname = _markup_name(row.uname)
        if row.qualifier:
            style = 'taxon-qualifier-latin' if row.qualifier in LATIN_QUALIFIERS else 'taxon-qualifier'
            uname += f' <span class="{style}">{html.escape(row.qualifier, quote=False)}</span>'

        authority = html.escape(row.authority or '', quote=False)
        return f'<span class="italictaxon">{uname}</span> <span class="taxauthority">{authority}</span>'

    def _accepted_markup(self, row: ResultRow) -> str:
        accepted = _markup_name(row.accepted_name_string or '')
        if row.accepted_qualifier:
            accepted += f' <b>{html.escape(row.accepted_qualifier, quote=False)}</b>'

        authority = html.escape(row.accepted_authority or '', quote=False)
        return (
            f'<span class="pref-taxon-name"> = <span class="italictaxon">{accepted}</span>'
            f' <span class="taxauthority">{authority}</span></span>'
        )

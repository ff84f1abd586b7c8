"""
Roster construction: the fixed, ordered author list a masterfile encodes
presence against.

Every author seen on any publication gets a short abbreviation that is
unique within the roster. The protagonist is moved to the front; everyone
else keeps first-appearance order. Masterfile lines depend on this order,
so nothing downstream may re-sort the roster.
"""

import logging

from dblp_masterfile.helpers.author_helpers import abbreviate, unique_abbreviation
from dblp_masterfile.models.model_dblp import Publication, Roster, RosterEntry

logger = logging.getLogger(__name__)


def build_roster(publications: list[Publication], protagonist_id: str) -> Roster:
    """Build a fresh roster for the given publications.

    Returns an empty roster carrying a warning when the protagonist is not
    among the authors; callers decide how to surface it.
    """
    entries: dict[str, RosterEntry] = {}
    taken: set[str] = set()

    for pub in publications:
        for author in pub.authors:
            if author.id in entries:
                continue
            abbreviation = unique_abbreviation(abbreviate(author.name), taken)
            taken.add(abbreviation)
            entries[author.id] = RosterEntry(
                abbreviation=abbreviation, full_name=author.name
            )

    if protagonist_id not in entries:
        message = f"Protagonist {protagonist_id} not found among publication authors"
        logger.warning(message)
        return Roster(warnings=[message])

    ordered = {protagonist_id: entries.pop(protagonist_id)}
    ordered.update(entries)
    return Roster(entries=ordered)

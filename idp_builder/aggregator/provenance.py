from typing import Callable, Dict, Iterable, List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel

from idp_builder.config import AS_PROVIDED_TEXT, INFO_LINK_FORMAT, MEDIAN_TEXT
from idp_builder.tables.params import param_name_from_extended_name

NAME_SEPARATOR = "-"


class ProvenanceNote(BaseModel):
    """Describes which datasets a reported value was derived from."""

    name: str
    cruise: str
    quantity: str
    section: str = ""
    contributors: List[str]
    generators: Dict[str, List[str]] = {}
    processing: str

    @property
    def reference(self) -> str:
        return INFO_LINK_FORMAT.format(self.name)

    def to_html(self) -> str:
        rows = "\n".join(
            f"<tr><td>{name}</td><td>{', '.join(self.generators.get(name, []))}</td></tr>"
            for name in self.contributors
        )
        return (
            "<html>\n<head><meta charset=\"utf-8\"></head>\n<body>\n"
            f"<h3>{self.quantity} @ {self.cruise}</h3>\n"
            + (f"<p>Section: {self.section}</p>\n" if self.section else "")
            + "<table>\n<tr><th>Dataset</th><th>Data generator(s)</th></tr>\n"
            f"{rows}\n</table>\n"
            f"<p>{self.processing}</p>\n</body>\n</html>\n"
        )


NoteKey = Tuple[str, str, Tuple[str, ...]]


def contributor_token(extended_name: str) -> str:
    """Barcode of a dataset, its parameter name when it has none."""
    name, barcode = param_name_from_extended_name(extended_name)
    return barcode or name


def note_name(cruise: str, quantity: str, contributors: Iterable[str]) -> str:
    tokens = NAME_SEPARATOR.join(contributor_token(c) for c in contributors)
    return f"{cruise}_{quantity}_{tokens}"


class ProvenanceRegistry:
    """
    Run wide cache of provenance notes.

    A note is created the first time a (cruise, quantity, contributor
    set) combination is reconciled. Contributors are identified by their
    extended names, so the order in which an event lists its datasets
    does not matter. ``sink`` is called once for every new note, e.g. to
    write it to storage.
    """

    def __init__(
        self,
        sink: Optional[Callable[[ProvenanceNote], None]] = None,
        sections: Optional[Callable[[str], str]] = None,
        generators: Optional[Callable[[str], List[str]]] = None,
    ):
        self.sink = sink
        self.sections = sections
        self.generators = generators
        self.notes: Dict[NoteKey, ProvenanceNote] = {}

    def note_for(self, cruise: str, quantity: str, contributor_names: Iterable[str]) -> ProvenanceNote:
        contributors = sorted(set(contributor_names))
        key = (cruise, quantity, tuple(contributors))
        note = self.notes.get(key)
        if note is not None:
            return note

        note = ProvenanceNote(
            name=note_name(cruise, quantity, contributors),
            cruise=cruise,
            quantity=quantity,
            section=self.sections(cruise) if self.sections else "",
            contributors=contributors,
            generators={n: self.generators(n) for n in contributors} if self.generators else {},
            processing=AS_PROVIDED_TEXT if len(contributors) == 1 else MEDIAN_TEXT,
        )
        self.notes[key] = note
        logger.debug(f"New provenance note {note.name}")
        if self.sink is not None:
            self.sink(note)
        return note

    def __len__(self) -> int:
        return len(self.notes)

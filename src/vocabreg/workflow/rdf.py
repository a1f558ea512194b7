"""RDF reading for the transform providers.

Content files are parsed with rdflib according to their suffix and
flattened into plain ``Triple`` tuples. Blank nodes take the form
``_:<id>``, IRIs are returned without angle brackets. Named graphs in
TriG and TriX files are merged.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from pathlib import Path
from typing import NamedTuple

import rdflib

RDF_TYPE = "http://www.w3.org/1999/02/22-rdf-syntax-ns#type"
RDFS_LABEL = "http://www.w3.org/2000/01/rdf-schema#label"

SKOS = "http://www.w3.org/2004/02/skos/core#"
SKOS_CONCEPT = SKOS + "Concept"
SKOS_PREF_LABEL = SKOS + "prefLabel"
SKOS_ALT_LABEL = SKOS + "altLabel"
SKOS_NOTATION = SKOS + "notation"
SKOS_DEFINITION = SKOS + "definition"
SKOS_BROADER = SKOS + "broader"
SKOS_NARROWER = SKOS + "narrower"

# File suffix to rdflib parser name.
PARSER_FORMATS = {
    ".rdf": "xml",
    ".owl": "xml",
    ".xml": "xml",
    ".ttl": "turtle",
    ".nt": "nt",
    ".n3": "n3",
    ".trig": "trig",
    ".trix": "trix",
    ".jsonld": "json-ld",
}
QUAD_FORMATS = frozenset({"trig", "trix"})


class Literal(NamedTuple):
    value: str
    language: str | None = None
    datatype: str | None = None


class Triple(NamedTuple):
    subject: str
    predicate: str
    object: str | Literal


def parser_format(path: Path) -> str | None:
    """rdflib parser for *path*, or None when its suffix is not a parseable RDF serialization."""
    return PARSER_FORMATS.get(path.suffix.lower())


def _term(node: rdflib.term.Node) -> str | Literal:
    if isinstance(node, rdflib.Literal):
        return Literal(str(node), node.language, str(node.datatype) if node.datatype is not None else None)
    if isinstance(node, rdflib.BNode):
        return f"_:{node}"
    return str(node)


def read_rdf(path: Path) -> list[Triple]:
    """Parse one RDF file.

    Raises:
        OSError: If the file cannot be read
        ValueError: If there is no parser for its suffix or its content is malformed
    """
    rdf_format = parser_format(path)
    if rdf_format is None:
        raise ValueError(f"no RDF parser for files ending in {path.suffix or '(no suffix)'!r}")

    parsed = rdflib.Dataset(default_union=True) if rdf_format in QUAD_FORMATS else rdflib.Graph()
    with open(path, "rb") as f:
        try:
            parsed.parse(file=f, format=rdf_format, publicID=path.resolve().as_uri())
        except Exception as e:  # each rdflib parser raises its own error type
            raise ValueError(f"malformed {rdf_format} content: {e}") from e
    return [Triple(_term(s), str(p), _term(o)) for s, p, o in parsed.triples((None, None, None))]


class Graph:
    """Subject-indexed view of a list of triples."""

    def __init__(self, triples: Iterable[Triple] = ()):
        self._index: dict[str, dict[str, list[str | Literal]]] = defaultdict(lambda: defaultdict(list))
        for triple in triples:
            self.add(triple)

    def add(self, triple: Triple) -> None:
        values = self._index[triple.subject][triple.predicate]
        if triple.object not in values:
            values.append(triple.object)

    def subjects(self) -> list[str]:
        return sorted(self._index)

    def objects(self, subject: str, predicate: str) -> list[str | Literal]:
        if subject not in self._index:
            return []
        return list(self._index[subject].get(predicate, ()))

    def resources(self, subject: str, predicate: str) -> list[str]:
        return [o for o in self.objects(subject, predicate) if not isinstance(o, Literal)]

    def literals(self, subject: str, predicate: str) -> list[Literal]:
        return [o for o in self.objects(subject, predicate) if isinstance(o, Literal)]

    def label(self, subject: str, predicate: str, language: str = "en") -> str | None:
        """Best literal for *predicate*: *language*, then untagged, then any."""
        literals = self.literals(subject, predicate)
        for wanted in (language, None):
            for literal in literals:
                if literal.language == wanted:
                    return literal.value
        return literals[0].value if literals else None

    def instances(self, rdf_class: str) -> list[str]:
        return [s for s in self.subjects() if rdf_class in self.resources(s, RDF_TYPE)]

    def __len__(self) -> int:
        return sum(len(v) for po in self._index.values() for v in po.values())

"""Transform providers: derive JSON version artefacts from harvested content.

Each transform reads the version's content files (``paths_to_process``)
in any serialization ``vocabreg.workflow.rdf`` can parse, builds one
graph from them and writes one JSON file into the task's output
directory, recorded as a version artefact. A file that cannot be parsed
gets a ``parse-<file>`` result and fails the subtask; nothing is written.

    JsonList       concepts_list.json   CONCEPT_LIST
    JsonTree       concepts_tree.json   CONCEPT_TREE
    ResourceDocs   resource_docs.json   RESOURCE_DOCS

DELETE retires the transform's artefacts and deletes their files.
"""

from __future__ import annotations

import json
from abc import abstractmethod
from pathlib import Path
from typing import Any, ClassVar

from vocabreg.core.enums import ProviderKind, VersionArtefactType
from vocabreg.workflow.providers.base import WorkflowProvider
from vocabreg.workflow.rdf import (
    RDF_TYPE,
    RDFS_LABEL,
    SKOS_ALT_LABEL,
    SKOS_BROADER,
    SKOS_CONCEPT,
    SKOS_DEFINITION,
    SKOS_NARROWER,
    SKOS_NOTATION,
    SKOS_PREF_LABEL,
    Graph,
    read_rdf,
)
from vocabreg.workflow.registry import register_provider
from vocabreg.workflow.subtask import Subtask
from vocabreg.workflow.task_info import TaskInfo
from vocabreg.workflow.task_utils import paths_to_process, task_output_path
from vocabreg.workflow.version_artefacts import create_version_artefact, retire_version_artefacts

PARSE_PREFIX = "parse-"


class JsonTransformProvider(WorkflowProvider):
    """Shared behaviour of the graph-to-JSON transforms."""

    provider_kind = ProviderKind.TRANSFORM

    output_filename: ClassVar[str]
    artefact_type: ClassVar[VersionArtefactType]
    result_key: ClassVar[str]

    @abstractmethod
    def build(self, graph: Graph) -> Any:
        """JSON-serializable document for *graph*."""

    def insert(self, task_info: TaskInfo, subtask: Subtask) -> None:
        graph = self.load_graph(task_info, subtask)
        if subtask.status.failed:
            return
        document = self.build(graph)
        try:
            output = task_output_path(task_info, self.output_filename)
            with open(output, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
        except OSError as e:
            self.fail(subtask, f"Unable to write {self.output_filename}: {e}", path=e.filename)
            return
        create_version_artefact(task_info, self.artefact_type, {"path": str(output)})
        subtask.add_result(self.result_key, str(output))
        self.log.info("transform.written", path=str(output), triples=len(graph))
        self.succeed(subtask)

    def delete(self, task_info: TaskInfo, subtask: Subtask) -> None:
        for artefact in retire_version_artefacts(task_info, self.artefact_type):
            path = artefact.data.get("path")
            if not path:
                continue
            try:
                Path(path).unlink(missing_ok=True)
            except OSError as e:
                self.fail(subtask, f"Unable to delete {path}: {e}", path=path)
                return
        self.succeed(subtask)

    def load_graph(self, task_info: TaskInfo, subtask: Subtask) -> Graph:
        graph = Graph()
        for path in paths_to_process(task_info):
            try:
                triples = read_rdf(path)
            except (OSError, ValueError) as e:
                subtask.add_result(PARSE_PREFIX + path.name, str(e))
                self.fail(subtask, f"Unable to read {path.name}: {e}", path=str(path))
                continue
            for triple in triples:
                graph.add(triple)
        return graph


def concept_links(graph: Graph, concepts: set[str]) -> dict[str, tuple[set[str], set[str]]]:
    """(broader, narrower) of every concept, with each link applied in both directions."""
    links: dict[str, tuple[set[str], set[str]]] = {c: (set(), set()) for c in concepts}
    for concept in concepts:
        for broader in graph.resources(concept, SKOS_BROADER):
            if broader in links:
                links[concept][0].add(broader)
                links[broader][1].add(concept)
        for narrower in graph.resources(concept, SKOS_NARROWER):
            if narrower in links:
                links[concept][1].add(narrower)
                links[narrower][0].add(concept)
    return links


def _concept_fields(graph: Graph, concept: str) -> dict[str, str]:
    fields = {}
    for key, predicate in (
        ("prefLabel", SKOS_PREF_LABEL),
        ("notation", SKOS_NOTATION),
        ("definition", SKOS_DEFINITION),
    ):
        value = graph.label(concept, predicate)
        if value is not None:
            fields[key] = value
    return fields


@register_provider
class JsonListTransformProvider(JsonTransformProvider):
    """Flat map of concept IRI to its labels and links."""

    output_filename = "concepts_list.json"
    artefact_type = VersionArtefactType.CONCEPT_LIST
    result_key = "concepts_list"

    def build(self, graph: Graph) -> dict[str, Any]:
        concepts = set(graph.instances(SKOS_CONCEPT))
        links = concept_links(graph, concepts)
        document = {}
        for concept in sorted(concepts):
            entry: dict[str, Any] = _concept_fields(graph, concept)
            broader, narrower = links[concept]
            if broader:
                entry["broader"] = sorted(broader)
            if narrower:
                entry["narrower"] = sorted(narrower)
            document[concept] = entry
        return document


@register_provider
class JsonTreeTransformProvider(JsonTransformProvider):
    """Forest of concepts following broader/narrower links.

    Roots are the concepts without a broader concept. A concept reached
    again along its own ancestry is not expanded a second time, and
    concepts only reachable through a cycle become roots themselves.
    """

    output_filename = "concepts_tree.json"
    artefact_type = VersionArtefactType.CONCEPT_TREE
    result_key = "concepts_tree"

    def build(self, graph: Graph) -> list[dict[str, Any]]:
        concepts = set(graph.instances(SKOS_CONCEPT))
        links = concept_links(graph, concepts)

        def sort_key(concept: str) -> tuple[str, str]:
            return ((graph.label(concept, SKOS_PREF_LABEL) or "").lower(), concept)

        visited: set[str] = set()

        def node(concept: str, ancestors: frozenset[str]) -> dict[str, Any]:
            visited.add(concept)
            entry: dict[str, Any] = {"iri": concept, **_concept_fields(graph, concept)}
            children = [
                node(child, ancestors | {concept})
                for child in sorted(links[concept][1], key=sort_key)
                if child not in ancestors and child != concept
            ]
            if children:
                entry["narrower"] = children
            return entry

        roots = [c for c in sorted(concepts, key=sort_key) if not links[c][0]]
        forest = [node(root, frozenset()) for root in roots]
        for concept in sorted(concepts, key=sort_key):
            if concept not in visited:
                forest.append(node(concept, frozenset()))
        return forest


@register_provider
class ResourceDocsTransformProvider(JsonTransformProvider):
    """One document per described resource, for search indexing."""

    output_filename = "resource_docs.json"
    artefact_type = VersionArtefactType.RESOURCE_DOCS
    result_key = "resource_docs"

    def build(self, graph: Graph) -> list[dict[str, Any]]:
        docs = []
        for subject in graph.subjects():
            if subject.startswith("_:"):
                continue
            doc: dict[str, Any] = {"iri": subject}
            types = sorted(graph.resources(subject, RDF_TYPE))
            if types:
                doc["types"] = types
            for key, predicate in (("prefLabel", SKOS_PREF_LABEL), ("label", RDFS_LABEL)):
                value = graph.label(subject, predicate)
                if value is not None:
                    doc[key] = value
            alt_labels = sorted({lit.value for lit in graph.literals(subject, SKOS_ALT_LABEL)})
            if alt_labels:
                doc["altLabels"] = alt_labels
            notation = graph.label(subject, SKOS_NOTATION)
            if notation is not None:
                doc["notation"] = notation
            docs.append(doc)
        return docs

"""
Attribute -> Consequence -> Value chain extraction.

Derives every reasoning chain of a laddering interview from the interview
graph and groups the rendered chains per stimulus:

1. Index the node list (id lookup, inverted parent pointers)
2. Climb parent pointers to find stimuli and attributes
3. Discover raw chains at all three completion depths
4. Filter (completed flag, incomplete chains, supersets, path merging)
5. Group per stimulus, render to text and sort

The extraction is a pure function of the graph snapshot and the options.
"""

import logging
from collections import OrderedDict, deque
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple, Union

from ladderchain.core.config import ExtractOptions
from ladderchain.core.models import (
    ACVChainText,
    GraphNode,
    InterviewGraph,
    NodeLabel,
    StimulusGroup,
)

logger = logging.getLogger(__name__)

CONSEQUENCE_SEPARATOR = " > "

# (stimulus id, attribute id, consequence ids top to leaf, value id or None)
ChainKey = Tuple[int, int, Tuple[int, ...], Optional[int]]


class GraphIndex:
    """Lookup structures over one node list."""

    def __init__(self, nodes: Iterable[GraphNode]):
        self.nodes: List[GraphNode] = list(nodes)
        self.by_id: Dict[int, GraphNode] = {}
        self.children_by_parent: Dict[int, List[GraphNode]] = {}

        for node in self.nodes:
            # First occurrence of a duplicated id wins
            self.by_id.setdefault(node.id, node)
            for parent_id in node.parents:
                self.children_by_parent.setdefault(parent_id, []).append(node)

    def get(self, node_id: int) -> Optional[GraphNode]:
        return self.by_id.get(node_id)

    def parents_of(self, node: GraphNode) -> List[GraphNode]:
        """Resolved parents in declaration order; dangling ids are skipped."""
        return [self.by_id[pid] for pid in node.parents if pid in self.by_id]

    def children_of(self, node: GraphNode) -> List[GraphNode]:
        return list(self.children_by_parent.get(node.id, []))

    def with_label(self, label: NodeLabel) -> List[GraphNode]:
        """Nodes carrying `label`, in input order."""
        return [node for node in self.nodes if node.has_label(label)]


class AttributeHit(NamedTuple):
    """An attribute reached from a consequence, with the consequences climbed on the way."""
    attribute: GraphNode
    path_leaf_to_top: Tuple[GraphNode, ...]


class AncestorSearch:
    """
    Upward traversals over parent pointers.

    Both searches are breadth-first with a visited set, so malformed
    cyclic graphs still terminate. Results of attributes_via_consequence
    are memoized per starting node id for the lifetime of this object,
    which is one extraction call.
    """

    def __init__(self, index: GraphIndex):
        self.index = index
        self._attribute_hits: Dict[int, Tuple[AttributeHit, ...]] = {}

    def ancestors_with_label(self, start: GraphNode, label: NodeLabel) -> List[GraphNode]:
        """Every transitive ancestor of `start` carrying `label`, deduplicated by id."""
        seen = set()
        found = []
        queue = deque(start.parents)

        while queue:
            parent_id = queue.popleft()
            if parent_id in seen:
                continue
            seen.add(parent_id)

            parent = self.index.get(parent_id)
            if parent is None:
                continue
            if parent.has_label(label):
                found.append(parent)
            queue.extend(parent.parents)

        return found

    def attributes_via_consequence(self, start: GraphNode) -> Tuple[AttributeHit, ...]:
        """
        Attributes reachable from a consequence through consequence parents only.

        Each hit carries the consequences traversed from `start` up to the
        attribute (exclusive), leaf first. States are deduplicated on
        (node id, path length): two different paths of equal length through
        the same consequence collapse into the first one found. A path never
        revisits one of its own consequences, so cycles terminate.
        """
        cached = self._attribute_hits.get(start.id)
        if cached is not None:
            return cached

        hits = []
        seen = set()
        queue = deque([(start, (start,))])

        while queue:
            consequence, path = queue.popleft()
            state = (consequence.id, len(path))
            if state in seen:
                continue
            seen.add(state)

            for parent in self.index.parents_of(consequence):
                if parent.has_label(NodeLabel.ATTRIBUTE):
                    hits.append(AttributeHit(attribute=parent, path_leaf_to_top=path))
                elif parent.has_label(NodeLabel.CONSEQUENCE):
                    if any(step.id == parent.id for step in path):
                        continue
                    queue.append((parent, path + (parent,)))

        result = tuple(hits)
        self._attribute_hits[start.id] = result
        return result


@dataclass(frozen=True)
class RawChain:
    """A chain before rendering; node references instead of text."""
    stimulus: GraphNode
    attribute: GraphNode
    consequence_path: Tuple[GraphNode, ...] = ()  # top (near attribute) to leaf (near value)
    value: Optional[GraphNode] = None

    @property
    def consequence_ids(self) -> Tuple[int, ...]:
        return tuple(node.id for node in self.consequence_path)

    @property
    def pair(self) -> Tuple[int, int]:
        return (self.stimulus.id, self.attribute.id)

    @property
    def key(self) -> ChainKey:
        return (
            self.stimulus.id,
            self.attribute.id,
            self.consequence_ids,
            self.value.id if self.value is not None else None,
        )

    @property
    def is_attribute_only(self) -> bool:
        return not self.consequence_path and self.value is None

    @property
    def rank(self) -> int:
        """0 = reaches a value, 1 = consequence only, 2 = attribute only."""
        if self.value is not None:
            return 0
        if self.consequence_path:
            return 1
        return 2

    def nodes(self) -> List[GraphNode]:
        touched = [self.stimulus, self.attribute, *self.consequence_path]
        if self.value is not None:
            touched.append(self.value)
        return touched


def _add_unique(chains: "OrderedDict[ChainKey, RawChain]", chain: RawChain) -> None:
    if chain.key not in chains:
        chains[chain.key] = chain


def _chains_from_consequence(
    search: AncestorSearch,
    consequence: GraphNode,
    value: Optional[GraphNode] = None,
) -> Iterable[RawChain]:
    for hit in search.attributes_via_consequence(consequence):
        path = tuple(reversed(hit.path_leaf_to_top))
        for stimulus in search.ancestors_with_label(hit.attribute, NodeLabel.STIMULUS):
            yield RawChain(stimulus, hit.attribute, path, value)


def discover_chains(index: GraphIndex, search: AncestorSearch) -> "OrderedDict[ChainKey, RawChain]":
    """Enumerate full, consequence-only and attribute-only chains; first key wins."""
    chains: "OrderedDict[ChainKey, RawChain]" = OrderedDict()

    for value in index.with_label(NodeLabel.VALUE):
        for parent in index.parents_of(value):
            if not parent.has_label(NodeLabel.CONSEQUENCE):
                continue
            for chain in _chains_from_consequence(search, parent, value):
                _add_unique(chains, chain)

    for consequence in index.with_label(NodeLabel.CONSEQUENCE):
        for chain in _chains_from_consequence(search, consequence):
            _add_unique(chains, chain)

    for attribute in index.with_label(NodeLabel.ATTRIBUTE):
        for stimulus in search.ancestors_with_label(attribute, NodeLabel.STIMULUS):
            _add_unique(chains, RawChain(stimulus, attribute))

    return chains


def filter_completed(chains: List[RawChain]) -> List[RawChain]:
    return [c for c in chains if all(node.is_value_path_completed for node in c.nodes())]


def drop_superseded(chains: List[RawChain]) -> List[RawChain]:
    """Remove attribute-only and consequence-only chains covered by deeper ones."""
    deeper_pairs = {c.pair for c in chains if not c.is_attribute_only}
    chains = [c for c in chains if not (c.is_attribute_only and c.pair in deeper_pairs)]

    full_paths = {(c.pair, c.consequence_ids) for c in chains if c.value is not None}
    return [
        c for c in chains
        if c.value is not None
        or not c.consequence_path
        or (c.pair, c.consequence_ids) not in full_paths
    ]


def _is_strict_prefix(shorter: Tuple[int, ...], longer: Tuple[int, ...]) -> bool:
    return len(shorter) < len(longer) and longer[:len(shorter)] == shorter


def merge_consequence_paths(chains: List[RawChain]) -> List[RawChain]:
    """Per (stimulus, attribute), drop chains whose consequence path continues in another chain."""
    by_pair: "OrderedDict[Tuple[int, int], List[RawChain]]" = OrderedDict()
    for chain in chains:
        by_pair.setdefault(chain.pair, []).append(chain)

    merged = []
    for group in by_pair.values():
        paths = [c.consequence_ids for c in group]
        for i, chain in enumerate(group):
            others = [p for j, p in enumerate(paths) if j != i]
            if not paths[i] and any(others):
                continue
            if any(_is_strict_prefix(paths[i], other) for other in others):
                continue
            merged.append(chain)
    return merged


def apply_filters(chains: List[RawChain], options: ExtractOptions) -> List[RawChain]:
    """Run the filter stages in their fixed order."""
    if options.require_completed_flag:
        chains = filter_completed(chains)
        logger.debug(f"{len(chains)} chains left after completed-flag filter")

    if not options.include_incomplete_chains:
        chains = [c for c in chains if c.value is not None]
        logger.debug(f"{len(chains)} chains left after dropping incomplete chains")

    if options.check_super_set:
        chains = drop_superseded(chains)
        logger.debug(f"{len(chains)} chains left after superset check")

    if options.merge_consequence_path:
        chains = merge_consequence_paths(chains)
        logger.debug(f"{len(chains)} chains left after merging consequence paths")

    return chains


def render_chain(chain: RawChain, merge_consequence_path: bool) -> ACVChainText:
    path_text = [node.conclusion for node in chain.consequence_path]
    if not path_text:
        consequence = ""
    elif merge_consequence_path:
        consequence = CONSEQUENCE_SEPARATOR.join(path_text)
    else:
        # Only the consequence nearest to the attribute is rendered
        consequence = path_text[0]

    return ACVChainText(
        attribute=chain.attribute.conclusion,
        consequence=consequence,
        value=chain.value.conclusion if chain.value is not None else "",
        consequence_path=path_text,
    )


def group_by_stimulus(index: GraphIndex, chains: List[RawChain], options: ExtractOptions) -> List[StimulusGroup]:
    """Render chains per stimulus, ordered by the stimuli's position in the node list."""
    ranked_by_stimulus: Dict[int, List[Tuple[Tuple[Any, ...], ACVChainText]]] = {}
    for chain in chains:
        text = render_chain(chain, options.merge_consequence_path)
        sort_key = (chain.rank, text.attribute, text.consequence, text.value)
        ranked_by_stimulus.setdefault(chain.stimulus.id, []).append((sort_key, text))

    groups = []
    emitted = set()
    for stimulus in index.with_label(NodeLabel.STIMULUS):
        if stimulus.id in emitted:
            continue
        ranked = sorted(ranked_by_stimulus.get(stimulus.id, []), key=lambda item: item[0])
        if ranked or options.include_empty_stimuli:
            groups.append(StimulusGroup(stimulus=stimulus.conclusion, chains=[t for _, t in ranked]))
            emitted.add(stimulus.id)

    return groups


def extract_stimulus_chains(
    graph: Union[InterviewGraph, Mapping[str, Any]],
    options: Optional[ExtractOptions] = None,
    **overrides: bool,
) -> List[StimulusGroup]:
    """
    Extract the Attribute -> Consequence(s) -> Value chains of an interview, grouped per stimulus.

    Args:
        graph: Interview graph, or its JSON document as a mapping
        options: Extraction options (defaults apply when omitted)
        **overrides: Individual option values, e.g. merge_consequence_path=True

    Returns:
        One StimulusGroup per stimulus with at least one chain (or every
        stimulus when include_empty_stimuli is set), in node-list order

    Raises:
        pydantic.ValidationError: If a mapping does not describe a graph, or an override is unknown

    Example:
        groups = extract_stimulus_chains(graph, merge_consequence_path=True)
        for group in groups:
            print(group.stimulus, len(group.chains))
    """
    if not isinstance(graph, InterviewGraph):
        graph = InterviewGraph.model_validate(graph)
    if options is None:
        options = ExtractOptions()
    if overrides:
        options = ExtractOptions.model_validate({**options.model_dump(), **overrides})

    index = GraphIndex(graph.nodes)
    search = AncestorSearch(index)

    raw_chains = discover_chains(index, search)
    logger.debug(f"Discovered {len(raw_chains)} raw chains in {len(index.nodes)} nodes")

    chains = apply_filters(list(raw_chains.values()), options)
    groups = group_by_stimulus(index, chains, options)

    logger.debug(f"Extracted {len(chains)} chains across {len(groups)} stimulus groups")
    return groups

"""Recommendation Scoring - weighted relationship graph, adjacency embeddings, attribute fallback.

Invariants:
    - All functions are PURE: the service gathers relationships and attributes, this module ranks
    - Graph is undirected; repeated relationships between a pair accumulate weight
    - Relationships from a node to itself are dropped from the graph
    - Ranking is deterministic: ties broken by node id

Design Decisions:
    - Adjacency rows (with self-loops) as embeddings, no random-walk training: direct
      neighbours and nodes sharing weighted neighbours get high cosine similarity
"""

import math
from dataclasses import dataclass, field

from venturenet.core.domain_types import RelationshipKind, Role

DEFAULT_WEIGHTS: dict[RelationshipKind, float] = {
    RelationshipKind.MENTORSHIP_COMPLETED: 3.0,
    RelationshipKind.INVESTMENT_INTEREST: 2.0,
    RelationshipKind.EVENT_PARTICIPATION: 1.0,
}

ATTRIBUTE_WEIGHTS = {
    "industry": 3.0,
    "stage": 2.0,
    "location": 1.5,
    "slug": 1.0,
}


@dataclass
class Relationship:
    source_id: str
    target_id: str
    kind: RelationshipKind
    weight: float | None = None


@dataclass
class Candidate:
    id: str
    score: float
    reasons: list[str] = field(default_factory=list)


def build_graph(relationships: list[Relationship]) -> dict[str, dict[str, float]]:
    """Accumulate relationships into an undirected weighted adjacency map."""
    adj: dict[str, dict[str, float]] = {}
    for rel in relationships:
        a, b = rel.source_id, rel.target_id
        if a == b:
            continue
        w = rel.weight if rel.weight is not None else DEFAULT_WEIGHTS[rel.kind]
        adj.setdefault(a, {})
        adj.setdefault(b, {})
        adj[a][b] = adj[a].get(b, 0.0) + w
        adj[b][a] = adj[b].get(a, 0.0) + w
    return adj


def adjacency_embeddings(adj: dict[str, dict[str, float]]) -> dict[str, list[float]]:
    """One vector per node: its edge weights over the sorted node order, plus a unit
    self-weight so direct neighbours score as similar, not only nodes sharing neighbours."""
    order = sorted(adj)
    index = {node: i for i, node in enumerate(order)}
    embeddings = {}
    for node in order:
        vec = [0.0] * len(order)
        vec[index[node]] = 1.0
        for neighbour, w in adj[node].items():
            vec[index[neighbour]] = w
        embeddings[node] = vec
    return embeddings


def cosine_similarity(a: list[float], b: list[float]) -> float:
    dot = na = nb = 0.0
    for va, vb in zip(a, b):
        dot += va * vb
        na += va * va
        nb += vb * vb
    if na == 0 or nb == 0:
        return 0.0
    return dot / (math.sqrt(na) * math.sqrt(nb))


def rank_similar(
    node_id: str, embeddings: dict[str, list[float]], top_k: int,
) -> list[str]:
    """Top-K most similar other nodes; unknown node yields []."""
    source = embeddings.get(node_id)
    if source is None or top_k <= 0:
        return []
    scored = [
        (cosine_similarity(source, vec), other)
        for other, vec in embeddings.items()
        if other != node_id
    ]
    scored = [(s, o) for s, o in scored if math.isfinite(s) and s > 0]
    scored.sort(key=lambda pair: (-pair[0], pair[1]))
    return [other for _, other in scored[:top_k]]


def target_roles_for(role: str | None, explicit: list[str] | None = None) -> list[str]:
    """Startups look for mentors/investors; everyone else looks for startups."""
    if explicit:
        return explicit
    if role == Role.STARTUP.value:
        return [Role.MENTOR.value, Role.INVESTOR.value]
    return [Role.STARTUP.value]


def _slug_prefix(slug: str | None) -> str | None:
    return slug.split("-")[0] if isinstance(slug, str) and slug else None


def score_attributes(current: dict, candidate: dict) -> Candidate | None:
    """Attribute similarity between two role-specific profiles, None when nothing matches."""
    score = 0.0
    reasons = []
    for attr in ("industry", "stage", "location"):
        mine, theirs = current.get(attr), candidate.get(attr)
        if mine and theirs and mine == theirs:
            score += ATTRIBUTE_WEIGHTS[attr]
            reasons.append(f"Same {attr}: {theirs}")
    mine_slug = _slug_prefix(current.get("slug"))
    if mine_slug and mine_slug == _slug_prefix(candidate.get("slug")):
        score += ATTRIBUTE_WEIGHTS["slug"]
        reasons.append("Similar slug")
    if score <= 0:
        return None
    return Candidate(id=candidate["id"], score=score, reasons=reasons)

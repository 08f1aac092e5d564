"""
Similarity Clusterer - single-pass greedy grouping by embedding

Each ticket joins the FIRST existing cluster whose running centroid is
within the similarity threshold; otherwise it starts a new cluster.
Results depend on input order. Clusters are never merged.
"""
from typing import List, Optional, Sequence

import numpy as np

from supportiq.errors import ClusteringInputError
from supportiq.models.schemas import Cluster, Ticket
from supportiq.utils.logger import get_logger
from supportiq.utils.text import extract_theme_keywords

logger = get_logger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.85


def cluster_keywords(tickets: Sequence[Ticket]) -> List[str]:
    """Most frequent theme words across the subjects and bodies of `tickets`"""
    return extract_theme_keywords(f"{t.subject or ''} {t.content}" for t in tickets)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors

    Returns 0.0 when either vector has zero norm.

    Raises:
        ClusteringInputError: If the vectors differ in length
    """
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    if va.shape != vb.shape:
        raise ClusteringInputError(
            f"Embedding dimension mismatch: {va.shape[0]} != {vb.shape[0]}"
        )

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


def new_centroid(centroid: np.ndarray, embedding: np.ndarray, size: int) -> np.ndarray:
    """
    Running-mean centroid after adding one member

    centroid' = centroid * (1 - 1/size) + embedding * (1/size), where
    size is the cluster size including the new member.
    """
    weight = 1.0 / size
    return centroid * (1 - weight) + embedding * weight


class _WorkingCluster:
    """Mutable state for one cluster during a single run"""

    def __init__(self, cluster_id: str, ticket: Ticket, embedding: np.ndarray):
        self.id = cluster_id
        self.members: List[Ticket] = [ticket]
        self.centroid = embedding.copy()
        self.category = ticket.category or "Other"

    def add(self, ticket: Ticket, embedding: np.ndarray) -> None:
        self.members.append(ticket)
        self.centroid = new_centroid(self.centroid, embedding, len(self.members))

    def freeze(self) -> Cluster:
        return Cluster(
            id=self.id,
            ticket_ids=[t.id for t in self.members],
            centroid=self.centroid.tolist(),
            category=self.category,
            keywords=cluster_keywords(self.members),
            members=list(self.members),
        )


class SimilarityClusterer:
    """
    Greedy first-match clusterer

    Args:
        threshold: Minimum cosine similarity to join a cluster (inclusive)
    """

    def __init__(self, threshold: float = DEFAULT_SIMILARITY_THRESHOLD):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"Similarity threshold must be in [0, 1], got {threshold}")
        self.threshold = threshold

    def _validated_embeddings(self, tickets: Sequence[Ticket]) -> List[np.ndarray]:
        embeddings = []
        dimension: Optional[int] = None

        for ticket in tickets:
            if not ticket.embedding:
                raise ClusteringInputError(f"Ticket {ticket.id} has no embedding")

            vector = np.asarray(ticket.embedding, dtype=float)
            if dimension is None:
                dimension = vector.shape[0]
            elif vector.shape[0] != dimension:
                raise ClusteringInputError(
                    f"Ticket {ticket.id} embedding has dimension {vector.shape[0]}, "
                    f"expected {dimension}"
                )
            embeddings.append(vector)

        return embeddings

    def cluster(self, tickets: Sequence[Ticket]) -> List[Cluster]:
        """
        Group tickets in input order

        Args:
            tickets: Tickets carrying embeddings of one shared dimension

        Returns:
            Clusters in creation order, ids cluster_1, cluster_2, ...

        Raises:
            ClusteringInputError: Missing embedding or mixed dimensions
        """
        embeddings = self._validated_embeddings(tickets)
        clusters: List[_WorkingCluster] = []

        for ticket, embedding in zip(tickets, embeddings):
            for cluster in clusters:
                if cosine_similarity(embedding, cluster.centroid) >= self.threshold:
                    cluster.add(ticket, embedding)
                    break
            else:
                clusters.append(
                    _WorkingCluster(f"cluster_{len(clusters) + 1}", ticket, embedding)
                )

        logger.info(
            f"Clustered {len(tickets)} tickets into {len(clusters)} clusters "
            f"(threshold={self.threshold})"
        )
        return [c.freeze() for c in clusters]


def cluster_tickets(
    tickets: Sequence[Ticket],
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD
) -> List[Cluster]:
    """Convenience wrapper around SimilarityClusterer"""
    return SimilarityClusterer(threshold).cluster(tickets)

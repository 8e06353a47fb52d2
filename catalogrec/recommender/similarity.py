"""User-user similarity over like-sets.

Provides the pairwise Jaccard similarity used by collaborative filtering and
an optional precomputed ``SimilarityIndex`` that scores one user against
every other user with a single sparse matrix-vector product.
"""

import logging
from pathlib import Path
from typing import AbstractSet, Dict, Iterable, List, Optional, Tuple

import joblib
import numpy as np
from scipy.sparse import csr_matrix

from catalogrec.recommender.models import UserInteractions

# Configure module logger
logger = logging.getLogger(__name__)

# Index artifact filename
INDEX_FILENAME = "similarity_index.joblib"


def jaccard_similarity(first: AbstractSet, second: AbstractSet) -> float:
    """Jaccard similarity of two sets: |A & B| / |A | B|.

    Two empty sets have similarity 0.

    Example:
        >>> jaccard_similarity({1, 2, 3}, {2, 3, 4})
        0.5
    """
    union_size = len(first | second)
    if union_size == 0:
        return 0.0
    return len(first & second) / union_size


class SimilarityIndex:
    """Sparse user x product like-matrix for batch Jaccard scoring.

    The index is a snapshot: likes recorded after ``build`` are not seen
    until the index is rebuilt.
    """

    def __init__(
        self,
        like_matrix: csr_matrix,
        user_id_to_idx: Dict[int, int],
        product_id_to_idx: Dict[int, int],
    ):
        self.like_matrix = like_matrix
        self.user_id_to_idx = user_id_to_idx
        self.product_id_to_idx = product_id_to_idx
        self.idx_to_user_id = np.array(
            [uid for uid, _ in sorted(user_id_to_idx.items(), key=lambda item: item[1])],
            dtype=np.int64,
        )
        self.row_sizes = np.asarray(like_matrix.sum(axis=1), dtype=np.float64).ravel()

        logger.info(
            f"Initialized SimilarityIndex: {len(user_id_to_idx)} users, "
            f"{len(product_id_to_idx)} products, {like_matrix.nnz} likes"
        )

    @classmethod
    def build(cls, users: Iterable[UserInteractions]) -> "SimilarityIndex":
        """Build the index from a full scan of user like-sets."""
        users = sorted(users, key=lambda user: user.user_id)
        product_ids = sorted({pid for user in users for pid in user.likes})

        user_id_to_idx = {user.user_id: idx for idx, user in enumerate(users)}
        product_id_to_idx = {pid: idx for idx, pid in enumerate(product_ids)}

        rows: List[int] = []
        cols: List[int] = []
        for user in users:
            row = user_id_to_idx[user.user_id]
            for pid in user.likes:
                rows.append(row)
                cols.append(product_id_to_idx[pid])

        data = np.ones(len(rows), dtype=np.float32)
        like_matrix = csr_matrix(
            (data, (np.array(rows, dtype=np.int64), np.array(cols, dtype=np.int64))),
            shape=(len(users), len(product_ids)),
            dtype=np.float32,
        )
        return cls(like_matrix, user_id_to_idx, product_id_to_idx)

    def score_users(
        self,
        likes: AbstractSet[int],
        exclude_user_id: Optional[int] = None,
    ) -> List[Tuple[int, float]]:
        """Jaccard similarity between ``likes`` and every indexed user.

        Args:
            likes: The target user's liked product ids.
            exclude_user_id: User to leave out (normally the target).

        Returns:
            (user_id, similarity) pairs in index order.
        """
        n_users, n_products = self.like_matrix.shape
        if n_users == 0:
            return []

        target = np.zeros(n_products, dtype=np.float32)
        for pid in likes:
            idx = self.product_id_to_idx.get(pid)
            if idx is not None:
                target[idx] = 1.0

        # float64 so scores equal exact Python division of the counts
        intersections = np.asarray(self.like_matrix @ target, dtype=np.float64)
        unions = self.row_sizes + len(likes) - intersections
        similarities = np.divide(
            intersections,
            unions,
            out=np.zeros_like(intersections),
            where=unions > 0,
        )

        return [
            (int(uid), float(sim))
            for uid, sim in zip(self.idx_to_user_id, similarities)
            if uid != exclude_user_id
        ]


def save_similarity_index(index: SimilarityIndex, output_dir: str) -> Path:
    """Save a similarity index to ``output_dir`` with joblib."""
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    index_path = output_path / INDEX_FILENAME
    joblib.dump(
        {
            "like_matrix": index.like_matrix,
            "user_id_to_idx": index.user_id_to_idx,
            "product_id_to_idx": index.product_id_to_idx,
        },
        index_path,
    )
    logger.info(f"Saved similarity index to {index_path}")
    return index_path


def load_similarity_index(index_dir: str) -> Optional[SimilarityIndex]:
    """Load a saved similarity index, or None if there is none."""
    index_path = Path(index_dir) / INDEX_FILENAME
    if not index_path.exists():
        logger.warning(f"Similarity index not found: {index_path}")
        return None

    artifacts = joblib.load(index_path)
    logger.info(f"Loaded similarity index from {index_path}")
    return SimilarityIndex(
        like_matrix=artifacts["like_matrix"],
        user_id_to_idx=artifacts["user_id_to_idx"],
        product_id_to_idx=artifacts["product_id_to_idx"],
    )

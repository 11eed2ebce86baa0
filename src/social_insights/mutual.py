"""Mutual relationship detector - follow-backs ordered by time.

A follow-back is a pair (A, B) where B followed A at t1 and A followed B at
t2 with t2 strictly after t1. Reciprocal follows created at the same instant
are not follow-backs; they are counted separately so callers can report them.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .store import EntityStore, FollowRecord


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FollowBack:
    user_id: int               # A, who followed back
    user_username: Optional[str]
    followed_user_id: int      # B, who followed first
    followed_username: Optional[str]
    followed_by_time: datetime     # t1: B -> A
    followed_back_time: datetime   # t2: A -> B

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class FollowBackResult:
    follow_backs: List[FollowBack]
    simultaneous_pairs: int = 0


def _index_edges(follows) -> Dict[Tuple[int, int], List[FollowRecord]]:
    edges: Dict[Tuple[int, int], List[FollowRecord]] = defaultdict(list)
    for follow in follows:
        if follow.follower_id == follow.followee_id or follow.created_at is None:
            continue
        edges[(follow.follower_id, follow.followee_id)].append(follow)
    return edges


def detect_follow_backs(store: EntityStore) -> FollowBackResult:
    """Self-pair the follow relation on swapped endpoints, keep t2 > t1."""
    edges = _index_edges(store.follows)

    results: List[FollowBack] = []
    simultaneous = 0
    for (a, b), outgoing in edges.items():
        if not (store.has_user(a) and store.has_user(b)):
            # dangling endpoints are reported by the data-quality pass
            continue
        incoming = edges.get((b, a))
        if not incoming:
            continue
        for back in outgoing:        # A -> B at t2
            for first in incoming:   # B -> A at t1
                if back.created_at > first.created_at:
                    results.append(FollowBack(
                        user_id=a,
                        user_username=store.username(a),
                        followed_user_id=b,
                        followed_username=store.username(b),
                        followed_by_time=first.created_at,
                        followed_back_time=back.created_at,
                    ))
                elif back.created_at == first.created_at and a < b:
                    # each simultaneous pair is seen from both sides; count it once
                    simultaneous += 1

    results.sort(key=lambda fb: (fb.user_id, fb.followed_user_id))
    results.sort(key=lambda fb: fb.followed_back_time, reverse=True)

    if simultaneous:
        logger.info(f"Excluded {simultaneous} simultaneous reciprocal follow pair(s)")
    logger.debug(f"Detected {len(results)} follow-back(s)")
    return FollowBackResult(follow_backs=results, simultaneous_pairs=simultaneous)

"""Pre-aggregation data-quality pass.

Counts nulls, duplicates, self-follows and dangling references. Findings are
diagnostics attached to every report; they never stop a report unless strict
mode asks for dangling references to be treated as structural faults.
"""
import logging
from collections import Counter
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Tuple

from .store import EntityStore, StructuralError


logger = logging.getLogger(__name__)


@dataclass
class DataQualityReport:
    """Counts of every data-quality finding in one snapshot."""
    null_usernames: int = 0
    null_image_urls: int = 0
    null_photo_user_ids: int = 0
    null_like_user_ids: int = 0
    null_like_photo_ids: int = 0
    null_comment_user_ids: int = 0
    null_comment_photo_ids: int = 0
    self_follows: int = 0
    duplicate_usernames: Dict[str, int] = field(default_factory=dict)
    duplicate_likes: List[Tuple[int, int, int]] = field(default_factory=list)
    duplicate_follows: List[Tuple[int, int, int]] = field(default_factory=list)
    dangling_references: Dict[str, int] = field(default_factory=dict)

    def findings(self) -> List[dict]:
        """Flatten into one record per check, zero counts included."""
        rows = [
            {"check": "null_usernames", "count": self.null_usernames},
            {"check": "null_image_urls", "count": self.null_image_urls},
            {"check": "null_photo_user_ids", "count": self.null_photo_user_ids},
            {"check": "null_like_user_ids", "count": self.null_like_user_ids},
            {"check": "null_like_photo_ids", "count": self.null_like_photo_ids},
            {"check": "null_comment_user_ids", "count": self.null_comment_user_ids},
            {"check": "null_comment_photo_ids", "count": self.null_comment_photo_ids},
            {"check": "self_follows", "count": self.self_follows},
            {"check": "duplicate_usernames", "count": len(self.duplicate_usernames)},
            {"check": "duplicate_likes", "count": len(self.duplicate_likes)},
            {"check": "duplicate_follows", "count": len(self.duplicate_follows)},
            {"check": "dangling_references", "count": sum(self.dangling_references.values())},
        ]
        return rows

    @property
    def has_findings(self) -> bool:
        return any(row["count"] for row in self.findings())

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duplicate_likes"] = [
            {"user_id": u, "photo_id": p, "count": n} for u, p, n in self.duplicate_likes
        ]
        data["duplicate_follows"] = [
            {"follower_id": a, "followee_id": b, "count": n} for a, b, n in self.duplicate_follows
        ]
        return data


def _duplicates(pairs) -> List[Tuple[int, int, int]]:
    counts = Counter(pairs)
    return [(a, b, n) for (a, b), n in counts.items() if n > 1]


def _check_reference(
    report: DataQualityReport,
    relation: str,
    column: str,
    dangling: int,
    strict: bool,
) -> None:
    if not dangling:
        return
    if strict:
        raise StructuralError(
            f"{dangling} row(s) in '{relation}.{column}' reference a nonexistent row",
            relation=relation,
            column=column,
        )
    report.dangling_references[f"{relation}.{column}"] = dangling


def validate(store: EntityStore, strict: bool = False) -> DataQualityReport:
    """Run every data-quality check over the snapshot."""
    report = DataQualityReport()

    # Nulls in required fields
    report.null_usernames = sum(1 for u in store.users if u.username is None)
    report.null_image_urls = sum(1 for p in store.photos if p.image_url is None)
    report.null_photo_user_ids = sum(1 for p in store.photos if p.user_id is None)
    report.null_like_user_ids = sum(1 for l in store.likes if l.user_id is None)
    report.null_like_photo_ids = sum(1 for l in store.likes if l.photo_id is None)
    report.null_comment_user_ids = sum(1 for c in store.comments if c.user_id is None)
    report.null_comment_photo_ids = sum(1 for c in store.comments if c.photo_id is None)

    # Duplicates
    username_counts = Counter(u.username for u in store.users if u.username is not None)
    report.duplicate_usernames = {
        name: n for name, n in username_counts.items() if n > 1
    }
    report.duplicate_likes = _duplicates(
        (l.user_id, l.photo_id) for l in store.likes
        if l.user_id is not None and l.photo_id is not None
    )
    report.duplicate_follows = _duplicates(
        (f.follower_id, f.followee_id) for f in store.follows
    )

    report.self_follows = sum(1 for f in store.follows if f.follower_id == f.followee_id)

    # Dangling references (nulls are already counted above)
    checks = [
        ("photos", "user_id", [p.user_id for p in store.photos], store.has_user),
        ("likes", "user_id", [l.user_id for l in store.likes], store.has_user),
        ("likes", "photo_id", [l.photo_id for l in store.likes], store.has_photo),
        ("comments", "user_id", [c.user_id for c in store.comments], store.has_user),
        ("comments", "photo_id", [c.photo_id for c in store.comments], store.has_photo),
        ("follows", "follower_id", [f.follower_id for f in store.follows], store.has_user),
        ("follows", "followee_id", [f.followee_id for f in store.follows], store.has_user),
        ("photo_tags", "photo_id", [pt.photo_id for pt in store.photo_tags], store.has_photo),
        ("photo_tags", "tag_id", [pt.tag_id for pt in store.photo_tags], store.has_tag),
    ]
    for relation, column, values, exists in checks:
        dangling = sum(1 for value in values if value is not None and not exists(value))
        _check_reference(report, relation, column, dangling, strict)

    if report.has_findings:
        flagged = [row for row in report.findings() if row["count"]]
        logger.warning(f"Data-quality findings: {flagged}")
    else:
        logger.debug("Data-quality pass found no issues")

    return report

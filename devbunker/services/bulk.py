"""
Bulk moderation actions.

Admin grids let moderators select several rows and approve, reject,
delete or change status in one go. The API has no batch endpoints, so
each id is sent on its own, one after another. A failing id does not
stop the run: every selected id is attempted and the outcome of each is
reported.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List

from devbunker.api.errors import ApiError, AuthenticationError


logger = logging.getLogger(__name__)


@dataclass
class BulkResult:
    """Per-id outcome of a bulk action."""

    action: str
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        """One-line outcome for a flash message."""
        if not self.attempted:
            return f"No items selected to {self.action}"
        if self.ok:
            noun = 'item' if len(self.succeeded) == 1 else 'items'
            return f"{self.action.capitalize()}: {len(self.succeeded)} {noun} done"
        return (
            f"{self.action.capitalize()}: {len(self.succeeded)} of {self.attempted} done, "
            f"{len(self.failed)} failed"
        )

    def failure_messages(self) -> List[str]:
        return [f"{item_id}: {message}" for item_id, message in self.failed.items()]

    def to_dict(self) -> Dict:
        return {
            'action': self.action,
            'succeeded': list(self.succeeded),
            'failed': dict(self.failed),
            'summary': self.summary(),
        }


def run_bulk(ids: Iterable[str], action: Callable[[str], object], label: str) -> BulkResult:
    """
    Apply an action to each id in turn.

    Duplicate and empty ids are skipped. ApiError failures are recorded
    against the id and the loop continues. An AuthenticationError stops
    the run and propagates.

    Args:
        ids: Selected ids, in display order
        action: Callable taking one id (usually a bound ApiClient method)
        label: Verb for messages, e.g. 'approve'

    Returns:
        BulkResult with succeeded ids and failed id -> message
    """
    result = BulkResult(action=label)
    seen = set()

    for item_id in ids:
        if not item_id or item_id in seen:
            continue
        seen.add(item_id)
        try:
            action(item_id)
        except AuthenticationError:
            raise
        except ApiError as e:
            logger.warning(f"Bulk {label} failed for {item_id}: {e.message}")
            result.failed[item_id] = e.message
        else:
            result.succeeded.append(item_id)

    logger.info(
        f"Bulk {label}: {len(result.succeeded)} succeeded, {len(result.failed)} failed"
    )
    return result

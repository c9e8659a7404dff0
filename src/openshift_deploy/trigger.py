"""Trigger gate for the deployment pipeline.

A run is triggered by a push of either a release tag (``v1.2.3``) or the
default branch. Every other event is a no-op.
"""

import re

from openshift_deploy.models import RefType, TriggerEvent

_TAG_PREFIX = "refs/tags/"
_BRANCH_PREFIX = "refs/heads/"

# Three dotted numeric components prefixed with 'v'
_RELEASE_TAG_PATTERN = re.compile(r"^v\d+\.\d+\.\d+$")


def parse_ref(ref: str) -> TriggerEvent | None:
    """Turn a full git ref into a TriggerEvent.

    Args:
        ref: Full ref such as 'refs/tags/v1.2.3' or 'refs/heads/main'.

    Returns:
        The trigger event, or None if the ref is neither a tag nor a branch
        (pull request merge refs, notes, empty strings).

    """
    if ref.startswith(_TAG_PREFIX) and len(ref) > len(_TAG_PREFIX):
        return TriggerEvent(RefType.TAG, ref[len(_TAG_PREFIX):])
    if ref.startswith(_BRANCH_PREFIX) and len(ref) > len(_BRANCH_PREFIX):
        return TriggerEvent(RefType.BRANCH, ref[len(_BRANCH_PREFIX):])
    return None


def is_release_tag(name: str) -> bool:
    """Return True if name looks like 'v<major>.<minor>.<patch>'."""
    return bool(_RELEASE_TAG_PATTERN.match(name))


def should_run(event: TriggerEvent | None, default_branch: str = "main") -> bool:
    """Decide whether the pipeline runs for an event.

    Args:
        event: The parsed trigger event (None for unrecognised refs).
        default_branch: The branch whose pushes are deployed.

    Returns:
        True for a release tag push or a push to the default branch.

    """
    if event is None:
        return False
    match event.ref_type:
        case RefType.TAG:
            return is_release_tag(event.name)
        case RefType.BRANCH:
            return event.name == default_branch
    return False

"""
Inbound change event for buildbump.

Produced by the webhook layer after it has filtered to the deploy
branch and worked out which application subdirectory changed.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..exit_codes import PreconditionError


@dataclass(frozen=True)
class ChangeEvent:
    """One push affecting one application."""
    commit_message: str
    source_ref: str
    subdirectory: str
    job_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChangeEvent':
        """
        Create from a JSON object.

        Accepts both snake_case and camelCase keys
        (commit_message / commitMessage, etc.).
        """
        def pick(*keys):
            for key in keys:
                if key in data:
                    return data[key]
            return None

        message = pick('commit_message', 'commitMessage')
        source_ref = pick('source_ref', 'sourceRef')
        subdirectory = pick('subdirectory')

        if message is None:
            raise PreconditionError('commit_message', message, "missing from event")
        if source_ref is None:
            raise PreconditionError('source_ref', source_ref, "missing from event")
        if subdirectory is None:
            raise PreconditionError('subdirectory', subdirectory, "missing from event")

        return cls(
            commit_message=message,
            source_ref=source_ref,
            subdirectory=subdirectory,
            job_id=pick('job_id', 'jobId'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'commit_message': self.commit_message,
            'source_ref': self.source_ref,
            'subdirectory': self.subdirectory,
            'job_id': self.job_id,
        }

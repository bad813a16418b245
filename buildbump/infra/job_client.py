"""
Build job client infrastructure for buildbump.

Runs image builds as Kubernetes Jobs through the `kubectl` CLI.
Each job runs an in-cluster image builder (Kaniko by default) that
clones the repository at the requested ref, builds the application
subdirectory and pushes the resulting image tag.

Only three things are exposed to the rest of buildbump:
- submit_job(source_ref, subdirectory, target_tag) -> job name
- poll_status(job name) -> JobStatus
- fetch_logs(job name) -> str
"""

import json
import logging
import re
import subprocess
import uuid
from typing import Any, Dict, List, Optional, Tuple

from ..domain.build import JobStatus
from ..exit_codes import APIError, BuildSubmissionError, ConfigError

logger = logging.getLogger(__name__)

DEFAULT_BUILDER_IMAGE = "gcr.io/kaniko-project/executor:latest"

# Kubernetes object names: DNS-1123 labels, at most 63 characters
_INVALID_NAME_CHARS = re.compile(r'[^a-z0-9-]+')

# Abbreviated or full git commit hash
_COMMIT_HASH = re.compile(r'[0-9a-f]{7,40}')


def job_name_for(application: str, target_tag: str, suffix: Optional[str] = None) -> str:
    """
    Build a DNS-1123 compatible job name.

    Example:
        job_name_for("app-example", "v1.0.1", "1a2b3c4d") -> "app-example-v1-0-1-1a2b3c4d"
    """
    suffix = suffix or uuid.uuid4().hex[:8]
    base = _INVALID_NAME_CHARS.sub('-', f"{application}-{target_tag}".lower()).strip('-')
    base = base[:63 - len(suffix) - 1].rstrip('-')
    return f"{base}-{suffix}"


class KubernetesJobClient:
    """
    Build-execution collaborator backed by Kubernetes Jobs.

    Example:
        client = KubernetesJobClient(
            git_url="https://git.homelab.local/me/apps.git",
            image_reference=lambda app, tag: f"registry.local/homelab/{app}:{tag}",
        )
        name = client.submit_job("3f2c1d0", "apps/app-example", "v1.0.1")
        status = client.poll_status(name)
    """

    def __init__(
        self,
        git_url: str,
        image_reference,
        namespace: str = "build",
        kubectl: str = "kubectl",
        builder_image: str = DEFAULT_BUILDER_IMAGE,
        backoff_limit: int = 0,
        timeout: int = 30,
        git_branch: str = "main",
    ):
        """
        Initialize KubernetesJobClient.

        Args:
            git_url: Repository the builder clones
            image_reference: Callable (application, tag) -> pushable image reference
            namespace: Namespace build jobs run in
            kubectl: kubectl executable
            builder_image: Container image of the builder
            backoff_limit: Job retries inside Kubernetes before it counts as failed
            timeout: kubectl command timeout in seconds
            git_branch: Branch fetched when source_ref is a commit hash
        """
        self.git_url = git_url
        self.image_reference = image_reference
        self.namespace = namespace
        self.kubectl = kubectl
        self.builder_image = builder_image
        self.backoff_limit = backoff_limit
        self.timeout = timeout
        self.git_branch = git_branch

    def _run(self, args: List[str], input_text: Optional[str] = None) -> Tuple[str, str, int]:
        """
        Run a kubectl command.

        Args:
            args: Arguments after the kubectl executable
            input_text: Data written to stdin

        Returns:
            Tuple of (stdout, stderr, returncode)
        """
        cmd = [self.kubectl, '--namespace', self.namespace] + args
        try:
            result = subprocess.run(
                cmd,
                input=input_text,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired as e:
            raise APIError(f"kubectl timed out after {self.timeout}s: {' '.join(args)}") from e
        except OSError as e:
            raise APIError(f"Could not run {self.kubectl}: {e}") from e

        return result.stdout or "", result.stderr or "", result.returncode

    def context_for(self, source_ref: str) -> str:
        """
        Kaniko git build context for a source ref.

        Kaniko reads the part after the first "#" as a ref name and checks
        out a commit only from a third "#" part, so commit hashes go after
        the configured branch.

        Examples:
            "3f2c1d0"          -> git://host/repo.git#refs/heads/main#3f2c1d0
            "release"          -> git://host/repo.git#refs/heads/release
            "refs/tags/v1.0.0" -> git://host/repo.git#refs/tags/v1.0.0
        """
        context = f"git://{self.git_url.split('://', 1)[-1]}"
        if _COMMIT_HASH.fullmatch(source_ref):
            return f"{context}#refs/heads/{self.git_branch}#{source_ref}"
        if source_ref.startswith('refs/'):
            return f"{context}#{source_ref}"
        return f"{context}#refs/heads/{source_ref}"

    def build_manifest(self, name: str, source_ref: str, subdirectory: str, target_tag: str) -> Dict[str, Any]:
        """Job manifest for one build."""
        application = subdirectory.rstrip('/').split('/')[-1]
        destination = self.image_reference(application, target_tag)
        labels = {
            'app.kubernetes.io/managed-by': 'buildbump',
            'buildbump/application': application[:63],
        }
        return {
            'apiVersion': 'batch/v1',
            'kind': 'Job',
            'metadata': {
                'name': name,
                'namespace': self.namespace,
                'labels': labels,
                'annotations': {
                    'buildbump/source-ref': source_ref,
                    'buildbump/target-tag': target_tag,
                },
            },
            'spec': {
                'backoffLimit': self.backoff_limit,
                'template': {
                    'metadata': {'labels': labels},
                    'spec': {
                        'restartPolicy': 'Never',
                        'containers': [{
                            'name': 'builder',
                            'image': self.builder_image,
                            'args': [
                                f"--context={self.context_for(source_ref)}",
                                f"--context-sub-path={subdirectory.strip('/')}",
                                f"--destination={destination}",
                            ],
                        }],
                    },
                },
            },
        }

    def submit_job(self, source_ref: str, subdirectory: str, target_tag: str, job_id: Optional[str] = None) -> str:
        """
        Create the build job. Does not wait for it.

        Returns:
            Job name, used as the handle for poll_status and fetch_logs

        Raises:
            BuildSubmissionError: If kubectl rejects the job
            ConfigError: If no repository URL is configured (build.git_url)
        """
        if not self.git_url:
            raise ConfigError("Repository URL is not configured (build.git_url)")

        application = subdirectory.rstrip('/').split('/')[-1]
        name = job_id or job_name_for(application, target_tag)
        manifest = self.build_manifest(name, source_ref, subdirectory, target_tag)

        _, stderr, code = self._run(['create', '-f', '-'], input_text=json.dumps(manifest))
        if code != 0:
            raise BuildSubmissionError(f"kubectl create job {name} failed: {stderr.strip()}")

        logger.debug(f"Created build job {name} in namespace {self.namespace}")
        return name

    def poll_status(self, handle: str) -> JobStatus:
        """
        Read the job's status.

        Raises:
            APIError: If the job cannot be read
        """
        stdout, stderr, code = self._run(['get', 'job', handle, '--output', 'json'])
        if code != 0:
            raise APIError(f"kubectl get job {handle} failed: {stderr.strip()}")
        try:
            job = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise APIError(f"Malformed job status for {handle}: {e}") from e
        return parse_job_status(job)

    def fetch_logs(self, handle: str) -> str:
        """Builder output of the job; an explanatory line if logs are unavailable."""
        stdout, stderr, code = self._run(['logs', f'job/{handle}', '--all-containers=true'])
        if code != 0:
            logger.warning(f"Could not fetch logs for job {handle}: {stderr.strip()}")
            return f"(logs unavailable: {stderr.strip()})"
        return stdout


def parse_job_status(job: Dict[str, Any]) -> JobStatus:
    """Map a batch/v1 Job object onto the tri-state JobStatus."""
    status = job.get('status') or {}
    for condition in status.get('conditions') or []:
        if condition.get('status') != 'True':
            continue
        if condition.get('type') == 'Complete':
            return JobStatus.SUCCEEDED
        if condition.get('type') == 'Failed':
            return JobStatus.FAILED

    if (status.get('succeeded') or 0) > 0:
        return JobStatus.SUCCEEDED
    return JobStatus.PENDING

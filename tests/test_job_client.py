"""
Tests for the Kubernetes build job client.

kubectl is never run; subprocess.run is patched.
"""

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from buildbump.domain.build import JobStatus
from buildbump.exit_codes import APIError, BuildSubmissionError, ConfigError
from buildbump.infra.job_client import KubernetesJobClient, job_name_for, parse_job_status


def completed(stdout="", stderr="", returncode=0):
    result = MagicMock()
    result.stdout = stdout
    result.stderr = stderr
    result.returncode = returncode
    return result


@pytest.fixture
def client():
    return KubernetesJobClient(
        git_url="https://git.homelab.local/me/apps.git",
        image_reference=lambda app, tag: f"registry.local/homelab/{app}:{tag}",
        namespace="build",
    )


class TestJobName:

    def test_dns_compatible(self):
        assert job_name_for("app-example", "v1.0.1", "abcd1234") == "app-example-v1-0-1-abcd1234"

    def test_lowercases_and_replaces(self):
        assert job_name_for("My_App", "v2.0.0", "ff") == "my-app-v2-0-0-ff"

    def test_truncated_to_63(self):
        name = job_name_for("a" * 80, "v1.0.0", "12345678")
        assert len(name) <= 63
        assert name.endswith("-12345678")

    def test_random_suffix(self):
        assert job_name_for("app", "v1.0.0") != job_name_for("app", "v1.0.0")


class TestSubmitJob:

    @patch('buildbump.infra.job_client.subprocess.run')
    def test_creates_job_from_manifest(self, mock_run, client):
        mock_run.return_value = completed(stdout="job.batch/x created")

        name = client.submit_job("3f2c1d0", "apps/app-example", "v1.0.1", job_id="app-example-v1-0-1-abc")

        assert name == "app-example-v1-0-1-abc"
        cmd = mock_run.call_args[0][0]
        assert cmd == ['kubectl', '--namespace', 'build', 'create', '-f', '-']
        manifest = json.loads(mock_run.call_args.kwargs['input'])
        assert manifest['kind'] == 'Job'
        assert manifest['metadata']['name'] == "app-example-v1-0-1-abc"
        assert manifest['spec']['backoffLimit'] == 0
        args = manifest['spec']['template']['spec']['containers'][0]['args']
        assert "--context=git://git.homelab.local/me/apps.git#refs/heads/main#3f2c1d0" in args
        assert "--context-sub-path=apps/app-example" in args
        assert "--destination=registry.local/homelab/app-example:v1.0.1" in args

    @patch('buildbump.infra.job_client.subprocess.run')
    def test_generates_name(self, mock_run, client):
        mock_run.return_value = completed()

        name = client.submit_job("3f2c1d0", "apps/app-example", "v1.0.1")

        assert name.startswith("app-example-v1-0-1-")

    @patch('buildbump.infra.job_client.subprocess.run')
    def test_rejected(self, mock_run, client):
        mock_run.return_value = completed(stderr="jobs.batch \"x\" already exists", returncode=1)

        with pytest.raises(BuildSubmissionError) as exc_info:
            client.submit_job("3f2c1d0", "apps/app-example", "v1.0.1")
        assert "already exists" in str(exc_info.value)

    @patch('buildbump.infra.job_client.subprocess.run')
    def test_kubectl_missing(self, mock_run, client):
        mock_run.side_effect = FileNotFoundError("kubectl")

        with pytest.raises(APIError):
            client.submit_job("3f2c1d0", "apps/app-example", "v1.0.1")

    @patch('buildbump.infra.job_client.subprocess.run')
    def test_kubectl_timeout(self, mock_run, client):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="kubectl", timeout=30)

        with pytest.raises(APIError):
            client.submit_job("3f2c1d0", "apps/app-example", "v1.0.1")


    @patch('buildbump.infra.job_client.subprocess.run')
    def test_missing_git_url(self, mock_run):
        client = KubernetesJobClient(git_url="", image_reference=lambda app, tag: f"{app}:{tag}")

        with pytest.raises(ConfigError) as exc_info:
            client.submit_job("3f2c1d0", "apps/app-example", "v1.0.1")
        assert "build.git_url" in str(exc_info.value)
        mock_run.assert_not_called()


class TestBuildContext:

    def test_commit_hash_checked_out_from_branch(self, client):
        assert client.context_for("3f2c1d0") == \
            "git://git.homelab.local/me/apps.git#refs/heads/main#3f2c1d0"

    def test_full_hash(self, client):
        sha = "3f2c1d0" + "a" * 33
        assert client.context_for(sha).endswith(f"#refs/heads/main#{sha}")

    def test_configured_branch(self):
        client = KubernetesJobClient(git_url="https://git.local/me/apps.git",
                                     image_reference=lambda app, tag: f"{app}:{tag}",
                                     git_branch="develop")
        assert client.context_for("3f2c1d0") == "git://git.local/me/apps.git#refs/heads/develop#3f2c1d0"

    def test_branch_name(self, client):
        assert client.context_for("release") == "git://git.homelab.local/me/apps.git#refs/heads/release"

    def test_full_ref_kept(self, client):
        assert client.context_for("refs/tags/v1.0.0") == "git://git.homelab.local/me/apps.git#refs/tags/v1.0.0"


class TestPollStatus:

    @patch('buildbump.infra.job_client.subprocess.run')
    def test_reads_job_json(self, mock_run, client):
        mock_run.return_value = completed(stdout=json.dumps({'status': {'succeeded': 1}}))

        assert client.poll_status("job-1") is JobStatus.SUCCEEDED
        assert mock_run.call_args[0][0] == ['kubectl', '--namespace', 'build',
                                            'get', 'job', 'job-1', '--output', 'json']

    @patch('buildbump.infra.job_client.subprocess.run')
    def test_not_found(self, mock_run, client):
        mock_run.return_value = completed(stderr='jobs.batch "job-1" not found', returncode=1)

        with pytest.raises(APIError):
            client.poll_status("job-1")

    @patch('buildbump.infra.job_client.subprocess.run')
    def test_malformed(self, mock_run, client):
        mock_run.return_value = completed(stdout="not json")

        with pytest.raises(APIError):
            client.poll_status("job-1")


class TestParseJobStatus:

    def test_pending_when_no_status(self):
        assert parse_job_status({}) is JobStatus.PENDING
        assert parse_job_status({'status': {'active': 1}}) is JobStatus.PENDING

    def test_complete_condition(self):
        job = {'status': {'conditions': [{'type': 'Complete', 'status': 'True'}]}}
        assert parse_job_status(job) is JobStatus.SUCCEEDED

    def test_failed_condition(self):
        job = {'status': {'failed': 1, 'conditions': [
            {'type': 'Failed', 'status': 'True', 'reason': 'BackoffLimitExceeded'},
        ]}}
        assert parse_job_status(job) is JobStatus.FAILED

    def test_false_conditions_ignored(self):
        job = {'status': {'active': 1, 'conditions': [{'type': 'Failed', 'status': 'False'}]}}
        assert parse_job_status(job) is JobStatus.PENDING

    def test_failed_pod_under_backoff_is_pending(self):
        assert parse_job_status({'status': {'failed': 1, 'active': 1}}) is JobStatus.PENDING


class TestFetchLogs:

    @patch('buildbump.infra.job_client.subprocess.run')
    def test_returns_output(self, mock_run, client):
        mock_run.return_value = completed(stdout="INFO[0003] Retrieving image manifest\nerror building image")

        assert "error building image" in client.fetch_logs("job-1")
        assert mock_run.call_args[0][0][-2:] == ['job/job-1', '--all-containers=true']

    @patch('buildbump.infra.job_client.subprocess.run')
    def test_unavailable_logs_do_not_raise(self, mock_run, client):
        mock_run.return_value = completed(stderr="pods not found", returncode=1)

        assert "logs unavailable" in client.fetch_logs("job-1")

"""
Tests for the container registry client.

HTTP is mocked at the requests.Session level.
"""

from unittest.mock import MagicMock

import pytest
import requests

from buildbump.exit_codes import RegistryError
from buildbump.infra.registry_client import RegistryClient


def make_response(status_code=200, payload=None, links=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    response.links = links or {}
    return response


def make_client(*responses, **kwargs):
    session = MagicMock()
    session.headers = {}
    session.get.side_effect = list(responses)
    client = RegistryClient("https://registry.homelab.local", session=session, **kwargs)
    return client, session


class TestListTags:

    def test_single_page(self):
        client, session = make_client(
            make_response(payload={'name': 'app-example', 'tags': ['v1.0.0', 'latest']})
        )

        assert client.list_tags("app-example") == ['v1.0.0', 'latest']
        url = session.get.call_args[0][0]
        assert url == "https://registry.homelab.local/v2/app-example/tags/list"
        assert session.get.call_args.kwargs['timeout'] == 10

    def test_namespace_prefix(self):
        client, session = make_client(make_response(payload={'tags': []}), namespace="homelab")

        client.list_tags("app-example")

        assert session.get.call_args[0][0] == "https://registry.homelab.local/v2/homelab/app-example/tags/list"

    def test_follows_link_pagination(self):
        client, session = make_client(
            make_response(
                payload={'tags': ['v1.0.0']},
                links={'next': {'url': '/v2/app-example/tags/list?n=1&last=v1.0.0', 'rel': 'next'}},
            ),
            make_response(payload={'tags': ['v1.1.0']}),
        )

        assert client.list_tags("app-example") == ['v1.0.0', 'v1.1.0']
        second_url = session.get.call_args_list[1][0][0]
        assert second_url == "https://registry.homelab.local/v2/app-example/tags/list?n=1&last=v1.0.0"
        assert session.get.call_args_list[1].kwargs['params'] is None

    def test_unknown_repository_has_no_tags(self):
        client, _ = make_client(make_response(status_code=404))
        assert client.list_tags("new-app") == []

    def test_null_tags(self):
        client, _ = make_client(make_response(payload={'name': 'app', 'tags': None}))
        assert client.list_tags("app") == []

    def test_http_error(self):
        client, _ = make_client(make_response(status_code=503))

        with pytest.raises(RegistryError) as exc_info:
            client.list_tags("app-example")
        assert exc_info.value.status_code == 503

    def test_unauthorized(self):
        client, _ = make_client(make_response(status_code=401))
        with pytest.raises(RegistryError):
            client.list_tags("app-example")

    def test_network_error(self):
        client, _ = make_client(requests.ConnectionError("refused"))

        with pytest.raises(RegistryError) as exc_info:
            client.list_tags("app-example")
        assert "refused" in str(exc_info.value)

    def test_malformed_json(self):
        response = make_response()
        response.json.side_effect = ValueError("Expecting value")
        client, _ = make_client(response)

        with pytest.raises(RegistryError):
            client.list_tags("app-example")

    def test_unconfigured_url(self):
        client = RegistryClient("", session=MagicMock(headers={}))
        with pytest.raises(RegistryError):
            client.list_tags("app-example")


class TestConfiguration:

    def test_scheme_defaults_to_https(self):
        client = RegistryClient("registry.local:5000", session=MagicMock(headers={}))
        assert client.base_url == "https://registry.local:5000"

    def test_basic_auth(self):
        session = MagicMock(headers={})
        RegistryClient("https://r.local", username="bot", password="s3cret", session=session)
        assert session.auth == ("bot", "s3cret")

    def test_from_config(self):
        config = {'registry': {'url': 'http://r.local/', 'namespace': '/homelab/',
                               'timeout_seconds': 3, 'verify_tls': False}}
        client = RegistryClient.from_config(config)
        assert client.base_url == "http://r.local"
        assert client.namespace == "homelab"
        assert client.timeout == 3
        assert client.session.verify is False

    def test_image_reference(self):
        client = RegistryClient("https://registry.local:5000", namespace="homelab",
                                session=MagicMock(headers={}))
        assert client.image_reference("app-example", "v1.0.1") == "registry.local:5000/homelab/app-example:v1.0.1"

    def test_image_reference_without_registry(self):
        client = RegistryClient("", session=MagicMock(headers={}))
        assert client.image_reference("app", "v1.0.0") == "app:v1.0.0"

"""
Tests for the GitHub client.

Tests cover:
- Pagination via the Link header
- Pull requests filtered from the issue listing
- Fetch failures raising FetchError
- Rate limit tracking and retry
- Idempotent label add/remove
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from labelfixer.exit_codes import FetchError, MutationError
from labelfixer.infra.github_client import GitHubClient, GitHubLabelSink, RateLimitStatus


def make_response(status=200, json_data=None, headers=None, next_url=None):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = json_data if json_data is not None else []
    response.headers = headers or {}
    response.links = {'next': {'url': next_url}} if next_url else {}
    return response


@pytest.fixture
def session():
    mock = MagicMock()
    mock.headers = {}
    return mock


@pytest.fixture
def client(session):
    return GitHubClient(token='test-token', session=session, base_delay=0, max_retries=3)


class TestClientSetup:
    """Authentication and headers."""

    def test_token_header(self, session):
        GitHubClient(token='abc', session=session)
        assert session.headers['Authorization'] == 'token abc'
        assert session.headers['Accept'] == 'application/vnd.github+json'

    def test_token_from_env(self, session):
        with patch.dict('os.environ', {'LABELFIXER_GITHUB_TOKEN': 'from-env'}, clear=True):
            client = GitHubClient(session=session)
        assert client.token == 'from-env'

    def test_no_token(self, session):
        with patch.dict('os.environ', {}, clear=True):
            GitHubClient(session=session)
        assert 'Authorization' not in session.headers

    def test_from_config(self):
        config = {'github': {'token': 'cfg', 'rate_limit': {'max_retries': 5, 'max_delay_seconds': 10}}}
        client = GitHubClient.from_config(config)
        assert client.token == 'cfg'
        assert client.max_retries == 5
        assert client.max_delay == 10


class TestPagination:
    """Tests for issue listing and timelines."""

    def test_iter_closed_issues_follows_next_links(self, client, session):
        session.request.side_effect = [
            make_response(json_data=[{'number': 1}, {'number': 2, 'pull_request': {}}],
                          next_url='https://api.github.com/repositories/1/issues?page=2'),
            make_response(json_data=[{'number': 3}]),
        ]

        issues = list(client.iter_closed_issues('octo', 'repo'))

        assert [issue['number'] for issue in issues] == [1, 3]
        first, second = session.request.call_args_list
        assert first.args == ('GET', 'https://api.github.com/repos/octo/repo/issues')
        assert first.kwargs['params'] == {'per_page': 100, 'state': 'closed'}
        assert second.args == ('GET', 'https://api.github.com/repositories/1/issues?page=2')
        assert second.kwargs['params'] is None

    def test_iter_closed_issues_is_lazy(self, client, session):
        session.request.return_value = make_response(json_data=[{'number': 1}])
        iterator = client.iter_closed_issues('octo', 'repo')
        session.request.assert_not_called()
        assert next(iterator)['number'] == 1

    def test_get_timeline(self, client, session):
        events = [{'event': 'labeled', 'label': {'name': 'bug'}}]
        session.request.return_value = make_response(json_data=events)
        assert client.get_timeline('octo', 'repo', 7) == events
        assert session.request.call_args.args[1].endswith('/repos/octo/repo/issues/7/timeline')

    def test_http_error_raises_fetch_error(self, client, session):
        session.request.return_value = make_response(status=500)
        with pytest.raises(FetchError):
            client.get_timeline('octo', 'repo', 7)

    def test_non_list_page_raises_fetch_error(self, client, session):
        session.request.return_value = make_response(json_data={'message': 'weird'})
        with pytest.raises(FetchError):
            list(client.iter_closed_issues('octo', 'repo'))

    def test_invalid_json_raises_fetch_error(self, client, session):
        response = make_response()
        response.json.side_effect = ValueError('not json')
        session.request.return_value = response
        with pytest.raises(FetchError):
            client.get_timeline('octo', 'repo', 7)

    @patch('labelfixer.infra.github_client.time.sleep')
    def test_network_failure_raises_fetch_error(self, mock_sleep, client, session):
        session.request.side_effect = requests.ConnectionError('down')
        with pytest.raises(FetchError):
            client.get_timeline('octo', 'repo', 7)
        assert session.request.call_count == 3


class TestRateLimit:
    """Rate limit tracking and retry."""

    def test_status_from_headers(self, client, session):
        headers = {
            'X-RateLimit-Remaining': '4000',
            'X-RateLimit-Limit': '5000',
            'X-RateLimit-Reset': '0',
            'X-RateLimit-Used': '1000',
        }
        session.request.return_value = make_response(headers=headers)
        client.get_timeline('octo', 'repo', 1)
        status = client.rate_limit_status
        assert status == RateLimitStatus(remaining=4000, limit=5000, reset_time=0, used=1000)
        assert not status.is_low

    def test_low_rate_limit(self):
        assert RateLimitStatus(remaining=5, limit=5000, reset_time=0, used=4995).is_low

    @patch('labelfixer.infra.github_client.time.sleep')
    def test_retries_when_rate_limited(self, mock_sleep, client, session):
        limited = make_response(status=403, headers={'X-RateLimit-Remaining': '0'})
        session.request.side_effect = [limited, make_response(json_data=[{'event': 'closed'}])]

        assert client.get_timeline('octo', 'repo', 1) == [{'event': 'closed'}]
        assert session.request.call_count == 2
        mock_sleep.assert_called_once()

    def test_forbidden_without_rate_limit_is_not_retried(self, client, session):
        session.request.return_value = make_response(status=403, headers={'X-RateLimit-Remaining': '10'})
        with pytest.raises(FetchError):
            client.get_timeline('octo', 'repo', 1)
        assert session.request.call_count == 1


class TestLabels:
    """Label add/remove."""

    def test_add_label(self, client, session):
        session.request.return_value = make_response(status=200)
        client.add_label('octo', 'repo', 42, 'prioridade:critico')
        args, kwargs = session.request.call_args
        assert args == ('POST', 'https://api.github.com/repos/octo/repo/issues/42/labels')
        assert kwargs['json'] == {'labels': ['prioridade:critico']}

    def test_add_label_failure(self, client, session):
        session.request.return_value = make_response(status=422)
        with pytest.raises(MutationError) as exc_info:
            client.add_label('octo', 'repo', 42, 'x')
        assert exc_info.value.issue_number == 42
        assert exc_info.value.label == 'x'

    def test_remove_label_quotes_name(self, client, session):
        session.request.return_value = make_response(status=200)
        client.remove_label('octo', 'repo', 42, 'sup:acao imediata')
        args, _ = session.request.call_args
        assert args == ('DELETE', 'https://api.github.com/repos/octo/repo/issues/42/labels/sup%3Aacao%20imediata')

    def test_remove_absent_label_is_success(self, client, session):
        session.request.return_value = make_response(status=404)
        client.remove_label('octo', 'repo', 42, 'gone')

    def test_remove_label_failure(self, client, session):
        session.request.return_value = make_response(status=500)
        with pytest.raises(MutationError):
            client.remove_label('octo', 'repo', 42, 'x')

    @patch('labelfixer.infra.github_client.time.sleep')
    def test_network_failure_raises_mutation_error(self, mock_sleep, client, session):
        session.request.side_effect = requests.Timeout('slow')
        with pytest.raises(MutationError):
            client.add_label('octo', 'repo', 42, 'x')

    def test_sink_binds_repository(self):
        client = MagicMock()
        sink = GitHubLabelSink(client, 'octo', 'repo')
        sink.add_label(1, 'a')
        sink.remove_label(2, 'b')
        client.add_label.assert_called_once_with('octo', 'repo', 1, 'a')
        client.remove_label.assert_called_once_with('octo', 'repo', 2, 'b')

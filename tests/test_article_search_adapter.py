import pytest
import requests

from adapters.adapters.article_search_adapter import ArticleSearchAdapter, FetchError, fetch_pages
from utils.http import build_session
from utils.retry import PermanentError, RetryPolicy
from conftest import make_document

ENDPOINT = "https://api.example.test/svc/search/v2/articlesearch.json"


def _page_payload(request, context):
    page = int(request.qs["page"][0])
    docs = [
        make_document(f"https://www.example.test/{page}/{i}.html", "2020-01-01T05:00:00+0000", f"Film {page}-{i} (Movie)")
        for i in range(10)
    ]
    return {"status": "OK", "response": {"docs": docs}}


def _adapter(sleeps, **overrides):
    config = {
        "endpoint": ENDPOINT,
        "filter": 'type_of_material:("Review")',
        "sort": "newest",
        "page_count": 3,
        "api_key": "secret",
        **overrides,
    }
    policy = RetryPolicy(12, max_attempts=5, sleep=sleeps.append)
    return ArticleSearchAdapter(config, policy, session=build_session(), sleep=sleeps.append)


class TestFetchPages:

    def test_all_pages_in_order(self, requests_mock):
        requests_mock.get(ENDPOINT, json=_page_payload)
        sleeps = []

        records = _adapter(sleeps).extract()

        assert len(records) == 30
        pages = [int(req.qs["page"][0]) for req in requests_mock.request_history]
        assert pages == [0, 1, 2]
        first = requests_mock.request_history[0].qs
        assert first["sort"] == ["newest"]
        assert first["api-key"] == ["secret"]
        assert sleeps == []

    def test_rate_limit_is_retried_on_same_page(self, requests_mock):
        requests_mock.get(ENDPOINT, json=_page_payload)
        requests_mock.get(
            ENDPOINT + "?page=1",
            [{"status_code": 429}, {"exc": requests.exceptions.ConnectionError}, {"json": _page_payload}],
        )
        sleeps = []

        records = _adapter(sleeps).extract()

        assert len(records) == 30
        pages = [int(req.qs["page"][0]) for req in requests_mock.request_history]
        assert pages == [0, 1, 1, 1, 2]
        assert sleeps == [12.0, 12.0]

    def test_pacing_between_pages(self, requests_mock):
        requests_mock.get(ENDPOINT, json=_page_payload)
        sleeps = []
        _adapter(sleeps, page_delay_seconds=6).extract()
        assert sleeps == [6.0, 6.0]

    def test_client_error_is_terminal(self, requests_mock):
        requests_mock.get(ENDPOINT, status_code=401)
        sleeps = []
        with pytest.raises(FetchError):
            _adapter(sleeps).extract()
        assert requests_mock.call_count == 1
        assert sleeps == []

    def test_malformed_payload_is_terminal(self, requests_mock):
        requests_mock.get(ENDPOINT, text="<html>not json</html>")
        with pytest.raises(FetchError):
            _adapter([]).extract()
        assert requests_mock.call_count == 1

    def test_missing_response_field_is_terminal(self, requests_mock):
        requests_mock.get(ENDPOINT, json={"fault": "quota"})
        with pytest.raises(FetchError):
            _adapter([]).extract()

    def test_retry_ceiling(self, requests_mock):
        requests_mock.get(ENDPOINT, status_code=503)
        sleeps = []
        with pytest.raises(FetchError):
            fetch_pages(build_session(), ENDPOINT, {"fq": "x"}, 2, RetryPolicy(1, max_attempts=3, sleep=sleeps.append))
        assert requests_mock.call_count == 3
        assert len(sleeps) == 2

    def test_page_count_capped(self, requests_mock):
        requests_mock.get(ENDPOINT, json={"response": {"docs": []}})
        records = fetch_pages(build_session(), ENDPOINT, {"fq": "x"}, 150, RetryPolicy(1, sleep=lambda _: None))
        assert records == []
        assert requests_mock.call_count == 101

    def test_missing_api_key(self):
        with pytest.raises(PermanentError):
            _adapter([], api_key="").extract()


def test_transform_normalizes(requests_mock):
    requests_mock.get(ENDPOINT, json=_page_payload)
    adapter = _adapter([], page_count=1)
    reviews = adapter.transform(adapter.extract())
    assert len(reviews) == 10
    assert reviews["name"].str.startswith("film 0-").all()

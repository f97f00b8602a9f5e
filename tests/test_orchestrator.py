from __future__ import annotations

import asyncio
import json
import unittest

from app.config import AppSettings, CompletionSettings
from app.exceptions import MissingCredentialError, ModeDisallowedError, UnsupportedBackendError
from app.orchestrator import QueryOrchestrator
from search_gateway.backends import SearchBackend
from search_gateway.models import ConsultationVerdict, QueryMode, SearchResult


class StubConsultant:
    def __init__(self, verdict: ConsultationVerdict) -> None:
        self.verdict = verdict
        self.calls = []

    async def consult(self, query: str, model: str) -> ConsultationVerdict:
        self.calls.append((query, model))
        return self.verdict


class StubSearchTool:
    def __init__(self) -> None:
        self.executed = []
        self.summarized = []

    async def execute(self, config, search_input):
        self.executed.append((config, search_input))
        return [SearchResult(url="https://a.example", site_name="A", text_content="alpha")]

    async def summarize(self, config, search_input):
        self.summarized.append((config, search_input))
        return "summary text"


def _body(**fields) -> bytes:
    return json.dumps(fields).encode()


class QueryOrchestratorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = AppSettings(model_name="m", completion=CompletionSettings(backoff_seconds=0.0))
        self.search_tool = StubSearchTool()

    def _orchestrator(self, verdict: ConsultationVerdict, settings: AppSettings | None = None) -> QueryOrchestrator:
        self.consultant = StubConsultant(verdict)
        return QueryOrchestrator(settings or self.settings, self.consultant, self.search_tool)

    def test_normalize_parses_backend_and_config(self) -> None:
        orchestrator = self._orchestrator(ConsultationVerdict(needs_search=False))
        request = orchestrator.normalize(
            QueryMode.COMPLETE,
            _body(query="q", backend="bing", search_config={"api_key": "k"}),
        )
        self.assertEqual("q", request.query)
        self.assertIs(SearchBackend.BING, request.backend)
        self.assertEqual({"api_key": "k"}, request.search_config)

    def test_normalize_rejects_unknown_backend(self) -> None:
        orchestrator = self._orchestrator(ConsultationVerdict(needs_search=False))
        with self.assertRaises(UnsupportedBackendError):
            orchestrator.normalize(QueryMode.DECISION, _body(query="q", backend="altavista", search_config={}))

    def test_restricted_summarize_rejected(self) -> None:
        restricted = AppSettings(restricted_mode=True)
        orchestrator = self._orchestrator(ConsultationVerdict(needs_search=False), settings=restricted)
        with self.assertRaises(ModeDisallowedError):
            orchestrator.normalize(QueryMode.SUMMARIZE, _body(query="q", backend="tavily", search_config={}))

    def test_decision_reports_query_without_searching(self) -> None:
        orchestrator = self._orchestrator(ConsultationVerdict(needs_search=True, search_query="latest news"))
        payload = asyncio.run(orchestrator.run(QueryMode.DECISION, _body(query="q", backend="tavily", search_config={})))
        self.assertEqual({"decision": True, "query": "latest news"}, payload)
        self.assertEqual([("q", "m")], self.consultant.calls)
        self.assertEqual([], self.search_tool.executed)

    def test_complete_runs_search_with_verdict_query(self) -> None:
        orchestrator = self._orchestrator(ConsultationVerdict(needs_search=True, search_query="latest news"))
        payload = asyncio.run(
            orchestrator.run(QueryMode.COMPLETE, _body(query="q", backend="tavily", search_config={"api_key": "k"}))
        )
        self.assertEqual(
            {"decision": True, "results": [{"url": "https://a.example", "site_name": "A", "text_content": "alpha"}]},
            payload,
        )
        config, search_input = self.search_tool.executed[0]
        self.assertEqual("tavily", config.search_engine)
        self.assertEqual("latest news", search_input.query)

    def test_summarize_returns_summary_text(self) -> None:
        orchestrator = self._orchestrator(ConsultationVerdict(needs_search=True, search_query="latest news"))
        payload = asyncio.run(
            orchestrator.run(QueryMode.SUMMARIZE, _body(query="q", backend="bing", search_config={"api_key": "k"}))
        )
        self.assertEqual({"decision": True, "results": "summary text"}, payload)
        self.assertEqual([], self.search_tool.executed)

    def test_credentials_checked_only_when_searching(self) -> None:
        no_search = self._orchestrator(ConsultationVerdict(needs_search=False))
        payload = asyncio.run(no_search.run(QueryMode.COMPLETE, _body(query="q", backend="bing", search_config={})))
        self.assertEqual({"decision": False, "query": None}, payload)

        search = self._orchestrator(ConsultationVerdict(needs_search=True, search_query="s"))
        with self.assertRaises(MissingCredentialError):
            asyncio.run(search.run(QueryMode.COMPLETE, _body(query="q", backend="bing", search_config={})))
        self.assertEqual([], self.search_tool.executed)

    def test_handle_converts_errors_into_plain_text(self) -> None:
        orchestrator = self._orchestrator(ConsultationVerdict(needs_search=False))
        response = asyncio.run(orchestrator.handle(QueryMode.DECISION, b"not json"))
        self.assertEqual(500, response.status_code)
        self.assertTrue(response.headers["content-type"].startswith("text/plain"))
        self.assertEqual("*", response.headers["access-control-allow-origin"])


if __name__ == "__main__":
    unittest.main()

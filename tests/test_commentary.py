import unittest
from unittest.mock import MagicMock

import requests

from sector_pulse.errors import CommentaryError
from sector_pulse.integrations.gemini_rest import GeminiRestClient
from sector_pulse.schemas.quote import Quote
from sector_pulse.schemas.refresh import DashboardSnapshot, RefreshState
from sector_pulse.schemas.sector import SectorSnapshot
from sector_pulse.services.commentary import CommentaryService, build_commentary_prompt

QUOTES = [
    Quote(code="1", name="南银转债", change_pct=4.2),
    Quote(code="2", name="牧原转债", change_pct=3.5),
    Quote(code="3", name="大秦转债", change_pct=1.25),
    Quote(code="4", name="第四名", change_pct=0.5),
]
SECTORS = [SectorSnapshot(code="BK1036", name="半导体", change_pct=3.2)]


def _snapshot(quotes=QUOTES, sectors=SECTORS) -> DashboardSnapshot:
    return DashboardSnapshot(state=RefreshState(), quotes=list(quotes), sectors=list(sectors), history=[])


class StubGenerator:
    def __init__(self, text: str = "资金流向半导体。", error: CommentaryError | None = None) -> None:
        self.text = text
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text


class TestCommentaryPrompt(unittest.TestCase):
    def test_prompt_uses_top_quotes_and_all_sectors(self):
        prompt = build_commentary_prompt(QUOTES, SECTORS)

        self.assertIn("南银转债(4.2%)", prompt)
        self.assertIn("大秦转债(1.25%)", prompt)
        self.assertNotIn("第四名", prompt)
        self.assertIn("半导体(3.2%)", prompt)
        self.assertIn("150", prompt)

    def test_prompt_marks_missing_groups(self):
        prompt = build_commentary_prompt([], SECTORS)

        self.assertIn("可转债领涨：无", prompt)


class TestCommentaryService(unittest.TestCase):
    def test_generate_returns_text(self):
        generator = StubGenerator()
        service = CommentaryService(generator=generator)

        self.assertEqual(service.generate(_snapshot()), "资金流向半导体。")
        self.assertEqual(len(generator.prompts), 1)
        self.assertEqual(service.metrics(), {"requests": 1, "failures": 0, "last_error": None})

    def test_no_market_data_skips_generator(self):
        generator = StubGenerator()
        service = CommentaryService(generator=generator)

        with self.assertRaises(CommentaryError) as ctx:
            service.generate(_snapshot(quotes=[], sectors=[]))

        self.assertEqual(ctx.exception.reason, CommentaryError.NO_MARKET_DATA)
        self.assertEqual(generator.prompts, [])

    def test_generator_error_is_counted_and_reraised(self):
        service = CommentaryService(generator=StubGenerator(error=CommentaryError(CommentaryError.RATE_LIMITED)))

        with self.assertRaises(CommentaryError):
            service.generate(_snapshot())

        self.assertEqual(service.metrics()["failures"], 1)
        self.assertEqual(service.metrics()["last_error"], "RATE_LIMITED")


def _gemini_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(str(status_code))
    else:
        response.raise_for_status.return_value = None
    return response


class TestGeminiRestClient(unittest.TestCase):
    def _client(self, session, api_key="key-123"):
        return GeminiRestClient(api_key=api_key, model="m1", session=session, base_url="https://example.test")

    def test_generate_posts_prompt_and_joins_parts(self):
        session = MagicMock()
        session.post.return_value = _gemini_response(payload={
            "candidates": [{"content": {"parts": [{"text": "资金"}, {"text": "攻击半导体"}]}}],
        })

        text = self._client(session).generate("prompt")

        self.assertEqual(text, "资金攻击半导体")
        session.post.assert_called_once_with(
            "https://example.test/v1beta/models/m1:generateContent",
            headers={"content-type": "application/json; charset=utf-8", "x-goog-api-key": "key-123"},
            json={"contents": [{"parts": [{"text": "prompt"}]}]},
            timeout=20,
        )

    def test_missing_key_fails_without_request(self):
        session = MagicMock()

        with self.assertRaises(CommentaryError) as ctx:
            self._client(session, api_key="").generate("prompt")

        self.assertEqual(ctx.exception.reason, CommentaryError.MISSING_CREDENTIAL)
        session.post.assert_not_called()

    def test_error_mapping(self):
        cases = [
            (_gemini_response(429), CommentaryError.RATE_LIMITED),
            (_gemini_response(403), CommentaryError.MISSING_CREDENTIAL),
            (_gemini_response(500), CommentaryError.NETWORK_FAILURE),
            (_gemini_response(payload={"candidates": []}), CommentaryError.EMPTY_RESPONSE),
            (_gemini_response(payload={"candidates": [{"content": {"parts": [{"text": "  "}]}}]}), CommentaryError.EMPTY_RESPONSE),
        ]
        for response, reason in cases:
            with self.subTest(reason=reason):
                session = MagicMock()
                session.post.return_value = response
                with self.assertRaises(CommentaryError) as ctx:
                    self._client(session).generate("prompt")
                self.assertEqual(ctx.exception.reason, reason)

    def test_transport_error_is_network_failure(self):
        session = MagicMock()
        session.post.side_effect = requests.Timeout("slow")

        with self.assertRaises(CommentaryError) as ctx:
            self._client(session).generate("prompt")

        self.assertEqual(ctx.exception.reason, CommentaryError.NETWORK_FAILURE)


if __name__ == "__main__":
    unittest.main()

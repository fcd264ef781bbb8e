"""Unit tests for the NDJSON streaming relay."""

import json

import pytest_check as check

from docchat.api.relay import relay_fragments, relay_session


async def fragments(*texts: str, error: Exception | None = None):
    for text in texts:
        yield text
    if error:
        raise error


async def lines_of(stream) -> list[str]:
    return [line async for line in stream]


class TestRelayFragments:
    async def test_each_fragment_becomes_one_chunk_line(self) -> None:
        lines = await lines_of(relay_fragments(fragments("Revenue ", "fell ", "10%.")))

        check.equal(len(lines), 3)
        check.is_true(all(line.endswith("\n") and line.count("\n") == 1 for line in lines))
        check.equal(
            [json.loads(line) for line in lines],
            [
                {"type": "chunk", "text": "Revenue "},
                {"type": "chunk", "text": "fell "},
                {"type": "chunk", "text": "10%."},
            ],
        )

    async def test_newlines_in_text_stay_inside_one_record(self) -> None:
        lines = await lines_of(relay_fragments(fragments("line one\nline two")))

        assert len(lines) == 1
        assert json.loads(lines[0])["text"] == "line one\nline two"

    async def test_empty_fragments_are_dropped(self) -> None:
        lines = await lines_of(relay_fragments(fragments("", "A", "")))

        assert [json.loads(line)["text"] for line in lines] == ["A"]

    async def test_upstream_failure_ends_with_single_error_record(self) -> None:
        lines = await lines_of(
            relay_fragments(fragments("partial", error=RuntimeError("Quota exceeded")))
        )

        records = [json.loads(line) for line in lines]
        check.equal(records[0], {"type": "chunk", "text": "partial"})
        check.equal(records[-1], {"type": "error", "message": "Quota exceeded"})
        check.equal(len(records), 2)

    async def test_error_without_message_gets_generic_text(self) -> None:
        lines = await lines_of(relay_fragments(fragments(error=RuntimeError())))

        assert json.loads(lines[0]) == {
            "type": "error",
            "message": "An internal server error occurred.",
        }


async def test_session_record_line() -> None:
    lines = await lines_of(relay_session("abc123", "Hello"))

    assert [json.loads(line) for line in lines] == [
        {"type": "session", "sessionId": "abc123", "message": "Hello"}
    ]

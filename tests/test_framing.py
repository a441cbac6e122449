"""Tests for raw frame parsing and second-stage body decoding."""

import json

from gamesapp.bus.framing import ParseError, last_record, parse_frame
from gamesapp.bus.models import ControlBody, Envelope, UiEventBody, decode_body, make_envelope
from gamesapp.bus.models import ResourcesDeclaration, StoppedNotice


class TestParseFrame:
    def test_single_record(self) -> None:
        raw = 'data: {"body": "{}"}\n\n'
        assert parse_frame(raw) == {"body": "{}"}

    def test_only_last_record_is_used(self) -> None:
        raw = 'data: {"body": "first"}\n\ndata: {"body": "second"}\n\n'
        assert parse_frame(raw) == {"body": "second"}

    def test_prefix_is_stripped_by_length_not_content(self) -> None:
        assert parse_frame('xxxxxx{"body": "b"}') == {"body": "b"}

    def test_invalid_json_in_last_record(self) -> None:
        raw = 'data: {"body": "ok"}\n\ndata: {not json\n\n'
        result = parse_frame(raw)
        assert isinstance(result, ParseError)
        assert "invalid JSON" in result.reason

    def test_empty_frame(self) -> None:
        assert isinstance(parse_frame("\n\n\n\n"), ParseError)
        assert last_record("") is None

    def test_non_object_payload(self) -> None:
        result = parse_frame("data: [1, 2]")
        assert isinstance(result, ParseError)


class TestDecodeBody:
    def test_control_body(self) -> None:
        env = Envelope.model_validate(
            {"correlationId": "abc", "body": json.dumps({"ability": "games", "command": "start"})}
        )
        body = decode_body(env, ControlBody)
        assert isinstance(body, ControlBody)
        assert body.command == "start"
        assert env.reply_correlation_id == "abc"

    def test_message_id_used_when_no_correlation_id(self) -> None:
        env = Envelope.model_validate({"messageId": "m-1", "body": "{}"})
        assert env.reply_correlation_id == "m-1"

    def test_body_not_json(self) -> None:
        env = Envelope.model_validate({"body": "not json"})
        assert isinstance(decode_body(env, UiEventBody), ParseError)

    def test_body_wrong_types(self) -> None:
        env = Envelope.model_validate({"body": json.dumps({"resources": "UI"})})
        assert isinstance(decode_body(env, ControlBody), ParseError)


class TestMakeEnvelope:
    def test_correlation_id_omitted_when_none(self) -> None:
        env = make_envelope(StoppedNotice())
        assert "correlationId" not in env
        assert json.loads(env["body"]) == {"state": "stopped"}

    def test_body_is_json_text(self) -> None:
        env = make_envelope(ResourcesDeclaration(resources=["UI"]), "abc")
        assert env["correlationId"] == "abc"
        assert isinstance(env["body"], str)
        assert json.loads(env["body"]) == {"targets": ["taskmanager"], "resources": ["UI"]}

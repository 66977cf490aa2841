"""Tests for connection and preference string encoding."""

import itertools

import pytest

from p4_mediator.config.codec import (
    PREFERENCE_FIELDS,
    decode_connection,
    decode_preferences,
    encode_connection,
    encode_preferences,
)
from p4_mediator.exceptions import ConfigDecodeError
from p4_mediator.models.connection import Connection
from p4_mediator.models.preferences import Preferences


@pytest.fixture
def sample_connection():
    return Connection(
        server="perforce:1666",
        user="jsmith",
        client="jsmith-ws",
        password="s3cret",
        workspace_path="/home/jsmith/ws",
    )


class TestConnectionCodec:
    def test_encode_uses_delimiter_in_field_order(self, sample_connection):
        assert encode_connection(sample_connection) == (
            "perforce:1666~=~jsmith~=~jsmith-ws~=~s3cret~=~/home/jsmith/ws"
        )

    def test_round_trip(self, sample_connection):
        assert decode_connection(encode_connection(sample_connection)) == sample_connection

    def test_round_trip_with_empty_password(self):
        conn = Connection(server="p:1", user="u", client="c", password="", workspace_path="C:\\ws")
        encoded = encode_connection(conn)
        assert encoded == "p:1~=~u~=~c~=~~=~C:\\ws"
        assert decode_connection(encoded) == conn

    def test_decode_stored_value(self):
        conn = decode_connection("ssl:p4:1666~=~me~=~me-main~=~pw~=~/src/main")
        assert conn.server == "ssl:p4:1666"
        assert conn.client == "me-main"
        assert conn.workspace_path == "/src/main"

    @pytest.mark.parametrize(
        "value",
        [
            "only~=~four~=~fields~=~here",
            "a~=~b~=~c~=~d~=~e~=~f",
            "no delimiter",
        ],
    )
    def test_decode_wrong_field_count(self, value):
        with pytest.raises(ConfigDecodeError, match="connection fields"):
            decode_connection(value)

    def test_decode_empty_workspace_is_error(self):
        with pytest.raises(ConfigDecodeError, match="invalid connection"):
            decode_connection("p:1~=~u~=~c~=~pw~=~")


class TestPreferencesCodec:
    def test_encode_order(self):
        prefs = Preferences(
            intercept_add=True,
            intercept_delete=False,
            intercept_edit=False,
            confirm_edit=False,
            case_sensitive_workspaces=False,
            print_output=True,
        )
        assert encode_preferences(prefs) == "tffff" + "t"

    def test_decode_scenario(self):
        prefs = decode_preferences("tfttft")
        assert prefs.intercept_add is True
        assert prefs.intercept_delete is False
        assert prefs.intercept_edit is True
        assert prefs.confirm_edit is True
        assert prefs.case_sensitive_workspaces is False
        assert prefs.print_output is True

    def test_round_trip_all_combinations(self):
        for flags in itertools.product([True, False], repeat=len(PREFERENCE_FIELDS)):
            prefs = Preferences(**dict(zip(PREFERENCE_FIELDS, flags)))
            assert decode_preferences(encode_preferences(prefs)) == prefs

    def test_non_t_characters_read_as_false(self):
        prefs = decode_preferences("xTt?ft")
        assert prefs.intercept_add is False
        assert prefs.intercept_delete is False
        assert prefs.intercept_edit is True
        assert prefs.print_output is True

    @pytest.mark.parametrize("value", ["", "tft", None])
    def test_decode_too_short(self, value):
        with pytest.raises(ConfigDecodeError):
            decode_preferences(value)

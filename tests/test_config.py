import json

import pytest

from blockmark.config import Config, default_config, load_config


def test_default_values():
    config = default_config()
    assert config.server.port == "8080"
    assert config.server.host == "0.0.0.0"
    assert config.server.allow_origins == [
        "http://localhost:3000",
        "http://localhost:3001",
        "http://127.0.0.1:3000",
    ]
    assert config.parser.max_content_size == 1024 * 1024
    assert config.parser.enable_gfm is True
    assert config.websocket.max_connections == 1000
    assert config.websocket.max_message_size == 512 * 1024
    assert config.websocket.ping_period_seconds == 54
    assert config.websocket.pong_wait_seconds == 60


def test_default_instances_are_independent():
    first = default_config()
    second = default_config()
    first.server.allow_origins.append("http://example.com")
    assert "http://example.com" not in second.server.allow_origins


def test_missing_file_gives_defaults(tmp_path):
    assert load_config(tmp_path / "absent.json") == default_config()


def test_save_and_load_round_trip(tmp_path):
    config = default_config()
    config.server.port = "9090"
    config.server.allow_origins = ["http://example.com"]
    config.parser.enable_tables = False
    config.websocket.max_connections = 5
    path = tmp_path / "config.json"
    config.save(path)
    assert load_config(path) == config


def test_saved_file_is_indented_json(tmp_path):
    path = tmp_path / "config.json"
    default_config().save(path)
    text = path.read_text(encoding="utf-8")
    assert json.loads(text) == default_config().to_dict()
    assert '\n  "server": {' in text


def test_partial_file_fills_server_defaults_only(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"server": {"port": "7000"}}), encoding="utf-8")
    config = load_config(path)
    assert config.server.port == "7000"
    assert config.server.host == "0.0.0.0"
    assert config.server.allow_origins == default_config().server.allow_origins
    assert config.parser.max_content_size == 0
    assert config.parser.enable_gfm is False
    assert config.websocket.max_connections == 0


def test_null_document_gives_server_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("null", encoding="utf-8")
    config = load_config(path)
    assert config.server == default_config().server
    assert config.websocket.pong_wait_seconds == 0


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


@pytest.mark.parametrize(
    "document",
    [
        {"server": {"port": 8080}},
        {"parser": {"enable_gfm": "yes"}},
        {"websocket": {"max_connections": True}},
        {"server": {"allow_origins": [1, 2]}},
        {"server": "oops"},
        [1, 2, 3],
    ],
)
def test_mistyped_fields_raise(tmp_path, document):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_to_dict_keys():
    data = Config().to_dict()
    assert set(data) == {"server", "parser", "websocket"}
    assert set(data["server"]) == {"port", "host", "allow_origins"}
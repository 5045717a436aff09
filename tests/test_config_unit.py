# tests/test_config_unit.py
import math

import pytest

from alive.config import HostConfig, Settings, load_config, parse_duration, read_config
from alive.errors import ConfigError

CONFIG = """
hosts:
  - addr: 8.8.8.8
    interval: 200ms
    read-timeout: 100ms
    packet-size: 32
    ttl: 50
  - addr: example.org
    interval: 1m30s
    read-timeout: 2s
"""


@pytest.mark.parametrize("text, seconds", [
    ("200ms", 0.2),
    ("1s", 1.0),
    ("1.5s", 1.5),
    ("1m30s", 90.0),
    ("2h", 7200.0),
    ("250us", 0.00025),
    ("0", 0.0),
    (3, 3.0),
])
def test_parse_duration(text, seconds):
    assert parse_duration(text) == pytest.approx(seconds)


@pytest.mark.parametrize("text", ["", "ms", "10", "5 s", "1x", None])
def test_parse_duration_rejects_garbage(text):
    with pytest.raises(ConfigError):
        parse_duration(text)


def test_settings_defaults():
    s = Settings()
    assert s.interval == 1.0
    assert math.isinf(s.timeout)
    assert s.size == 0
    assert s.ttl == 64
    assert s.source == "0.0.0.0"
    assert s.privileged is False


def test_read_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    conf = read_config(str(path))

    assert [h.addr for h in conf.hosts] == ["8.8.8.8", "example.org"]
    first = conf.hosts[0]
    assert first.size == 32
    assert first.ttl == 50
    assert conf.hosts[1].ttl == 64


def test_host_to_settings():
    s = HostConfig(addr="8.8.8.8", interval="200ms", read_timeout="100ms", size=32, ttl=50) \
        .to_settings(privileged=True, source="10.0.0.1")
    assert s.interval == pytest.approx(0.2)
    assert s.read_deadline == pytest.approx(0.1)
    assert s.size == 32
    assert s.ttl == 50
    assert s.privileged is True
    assert s.source == "10.0.0.1"


def test_missing_addr_is_rejected():
    with pytest.raises(ConfigError):
        load_config("hosts:\n  - interval: 1s\n")


def test_bad_duration_is_rejected_at_load():
    with pytest.raises(ConfigError):
        load_config("hosts:\n  - addr: 1.1.1.1\n    interval: soon\n")


def test_broken_yaml():
    with pytest.raises(ConfigError):
        load_config("hosts: [\n")


def test_empty_config_has_no_hosts():
    assert load_config("").hosts == []


@pytest.mark.parametrize("key, value", [
    ("interval", "0s"),
    ("interval", "-1s"),
    ("read-timeout", "0"),
])
def test_non_positive_durations_are_rejected(key, value):
    """A zero or negative interval/read-timeout never reaches a watcher."""
    with pytest.raises(ConfigError) as exc:
        load_config(f"hosts:\n  - addr: 1.1.1.1\n    {key}: {value}\n")
    assert key in str(exc.value)


@pytest.mark.parametrize("ttl", [0, 256, -3, "many"])
def test_ttl_out_of_range_is_rejected(ttl):
    with pytest.raises(ConfigError):
        load_config(f"hosts:\n  - addr: 1.1.1.1\n    ttl: {ttl}\n")


def test_explicit_zero_size_and_edge_ttls_are_kept():
    conf = load_config(
        "hosts:\n"
        "  - addr: 1.1.1.1\n    packet-size: 0\n    ttl: 1\n"
        "  - addr: 1.0.0.1\n    ttl: 255\n"
    )
    assert conf.hosts[0].size == 0
    assert conf.hosts[0].ttl == 1
    assert conf.hosts[1].ttl == 255


def test_negative_size_is_rejected():
    with pytest.raises(ConfigError):
        load_config("hosts:\n  - addr: 1.1.1.1\n    packet-size: -1\n")

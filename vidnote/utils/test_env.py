import vidnote.utils.i18n  # noqa:F401

from easydict import EasyDict as edict

from .config import get_config
from .env import coerce_value, load_cfg_from_env


def test_load_cfg_from_env():
    input_dict = {"VIDNOTE_a": 2, "VIDNOTE_eoq__trabson": 3, "OTHER_b": 1}
    loaded = load_cfg_from_env(edict(), input_dict)
    assert loaded.a == 2
    assert loaded.eoq.trabson == 3
    assert "b" not in loaded


def test_values_take_the_type_of_the_default():
    cfg = edict({"storage": {"debounce": 1.0, "backend": "local"}, "server": {"port": 3001}})
    load_cfg_from_env(
        cfg,
        {
            "VIDNOTE_storage__debounce": "0.5",
            "VIDNOTE_storage__backend": "remote",
            "VIDNOTE_server__port": "8080",
        },
    )
    assert cfg.storage.debounce == 0.5
    assert cfg.storage.backend == "remote"
    assert cfg.server.port == 8080


def test_coerce_bool():
    assert coerce_value("true", False) is True
    assert coerce_value("0", True) is False
    assert coerce_value("x", None) == "x"


def test_get_config_does_not_leak_overrides():
    changed = get_config(env={"VIDNOTE_tools__color": "#000000"})
    assert changed.tools.color == "#000000"
    assert get_config(env={}).tools.color == "#ffffff"

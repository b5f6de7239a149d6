"""
Default configuration for vidnote.

Values live in an EasyDict tree so they can be read as attributes
(``cfg.storage.debounce``) and overridden from ``VIDNOTE_*`` environment
variables, see :func:`vidnote.utils.env.load_cfg_from_env`.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

from easydict import EasyDict as edict

from .env import load_cfg_from_env

DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "vidnote"

DEFAULT_CONFIG: Dict[str, Any] = {
    "video_id": "default",
    "tools": {
        "tool": "select",
        "color": "#ffffff",
        "annotation_duration": 2.0,
        # Approximate glyph box used to hit-test text annotations
        "text_char_width": 9.0,
        "text_line_height": 20.0,
        "line_hit_tolerance": 5.0,
    },
    "playback": {
        "poll_interval": 0.1,
    },
    "storage": {
        "backend": "local",
        "key": "video-annotations",
        "path": str(DEFAULT_DATA_DIR / "storage.json"),
        "debounce": 1.0,
    },
    "api": {
        "base_url": "http://localhost:3001/api",
        "timeout": 5.0,
    },
    "server": {
        "host": "0.0.0.0",
        "port": 3001,
        "prefix": "/api",
        "data_file": "annotations.json",
        "cors_origin": "*",
    },
}


def get_config(env: Optional[Dict[str, str]] = None) -> edict:
    """
    Build the effective configuration.

    Args:
        env: Environment mapping to read overrides from. Defaults to os.environ

    Returns:
        A fresh EasyDict; mutating it never touches the defaults
    """
    cfg = edict(copy.deepcopy(DEFAULT_CONFIG))
    return load_cfg_from_env(cfg, dict(os.environ if env is None else env))

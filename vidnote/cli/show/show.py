import asyncio
import json
import logging
from gettext import gettext as _
from pathlib import Path

from vidnote.core.annotation import visible_annotations
from vidnote.core.persistence import (
    JsonFileKeyValueStore,
    LocalBackend,
    RemoteBackend,
    parse_records,
)
from vidnote.utils.config import get_config

logger = logging.getLogger(__name__)


def describe(annotation) -> str:
    tool = annotation.tool.value
    span = f"{annotation.start:.2f}-{annotation.end:.2f}s"
    if tool == "text":
        shape = f"({annotation.x:g}, {annotation.y:g}) {annotation.text!r}"
    else:
        shape = (
            f"({annotation.start_x:g}, {annotation.start_y:g}) -> "
            f"({annotation.end_x:g}, {annotation.end_y:g})"
        )
    return f"{annotation.id}\t{tool}\t{span}\t{annotation.color}\t{shape}"


async def load(cfg, video_id: str, backend_name: str):
    if backend_name == "remote":
        backend = RemoteBackend(base_url=cfg.api.base_url, timeout=cfg.api.timeout)
        try:
            return await backend.load_all(video_id)
        finally:
            await backend.aclose()
    backend = LocalBackend(
        JsonFileKeyValueStore(Path(cfg.storage.path)), key=cfg.storage.key
    )
    return await backend.load_all(video_id)


def handle(args):
    cfg = get_config()
    video_id = args.video_id or cfg.video_id
    backend_name = args.backend or cfg.storage.backend

    annotations = parse_records(asyncio.run(load(cfg, video_id, backend_name)))
    if args.at is not None:
        annotations = visible_annotations(annotations, args.at)
    logger.debug(
        _("Found {count} annotations for video {video_id}").format(
            count=len(annotations), video_id=video_id
        )
    )

    if args.as_json:
        print(json.dumps([a.to_dict() for a in annotations], indent=2))
        return
    for annotation in annotations:
        print(describe(annotation))

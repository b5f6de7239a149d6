import logging
from gettext import gettext as _
from pathlib import Path

import uvicorn

from vidnote.server import create_app
from vidnote.utils.config import get_config

logger = logging.getLogger(__name__)


def handle(args):
    cfg = get_config().server
    host = args.host or cfg.host
    port = args.port or cfg.port
    data_file = Path(args.data_file or cfg.data_file)

    app = create_app(data_file, prefix=cfg.prefix, cors_origin=cfg.cors_origin)
    logger.info(
        _("Serving annotations from {data_file} on {host}:{port}{prefix}").format(
            data_file=data_file, host=host, port=port, prefix=cfg.prefix
        )
    )
    uvicorn.run(app, host=host, port=port)

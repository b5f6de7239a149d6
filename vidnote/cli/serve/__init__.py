from gettext import gettext as _
from pathlib import Path

COMMAND_DESCRIPTION = _("Run the annotation storage service")


def command(subparser):
    subparser.add_argument(
        "--host", dest="host", default=None, help=_("Interface to bind")
    )
    subparser.add_argument(
        "-p", "--port", dest="port", type=int, default=None, help=_("Port to listen on")
    )
    subparser.add_argument(
        "-d",
        "--data-file",
        dest="data_file",
        type=Path,
        default=None,
        help=_("JSON file holding the annotations"),
    )

    def handle(args):
        from .serve import handle as serve_handle

        serve_handle(args)

    return handle

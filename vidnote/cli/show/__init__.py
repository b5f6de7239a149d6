from gettext import gettext as _

COMMAND_DESCRIPTION = _("List the stored annotations of a video")


def command(subparser):
    subparser.add_argument(
        "video_id", nargs="?", default=None, help=_("Video to list, from config by default")
    )
    subparser.add_argument(
        "-b",
        "--backend",
        dest="backend",
        choices=("local", "remote"),
        default=None,
        help=_("Where to read annotations from"),
    )
    subparser.add_argument(
        "-t",
        "--at",
        dest="at",
        type=float,
        default=None,
        help=_("Only list annotations visible at this playback time (seconds)"),
    )
    subparser.add_argument(
        "--json", dest="as_json", action="store_true", help=_("Print raw records")
    )

    def handle(args):
        from .show import handle as show_handle

        show_handle(args)

    return handle

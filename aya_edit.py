"""
Aya Image Edit command line.

Opens an image as an in-memory document, selects a region, sends it with a
prompt to the configured provider, and writes the results.

Example:
    python aya_edit.py photo.png --prompt "replace the sky with a sunset" \\
        --select 0 0 640 200 --place original --output edited.png
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from AYA_Libs.constants import AUTO_SEND_MODES, PROVIDER_DASHSCOPE, PROVIDER_GEMINI
from AYA_Libs.errors import AyaError
from AYA_Libs.HostLib.memory_host import MemoryHost
from AYA_Libs.log_config import configure_logging
from AYA_Libs.PipelineLib.generation_cycle import GenerationSession
from AYA_Libs.PipelineLib.settings_store import get_settings_path, read_settings, write_settings

logger = logging.getLogger("AYA_Libs.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aya_edit",
        description="Edit a region of an image with an AI image provider.",
    )
    parser.add_argument("image", type=Path, help="PNG or JPEG to edit")
    parser.add_argument("-p", "--prompt", required=True, help="Edit instruction")
    parser.add_argument(
        "--select", nargs=4, type=float, metavar=("LEFT", "TOP", "RIGHT", "BOTTOM"),
        help="Selection rectangle in pixels (default: whole image)",
    )
    parser.add_argument("--feather", type=float, default=0.0, help="Selection feather radius")
    parser.add_argument("--settings", type=Path, default=None,
                        help="Settings JSON (default: ~/.aya_image_edit/settings.json)")
    parser.add_argument("--provider", choices=[PROVIDER_DASHSCOPE, PROVIDER_GEMINI],
                        help="Override the provider from settings")
    parser.add_argument("--place", choices=AUTO_SEND_MODES,
                        help="Where to place the first result (default: settings)")
    parser.add_argument("-o", "--output", type=Path, help="Write the flattened document here")
    parser.add_argument("--save-result", type=Path, help="Write the raw first result here")
    parser.add_argument("--remember-prompt", action="store_true",
                        help="Store the prompt as last_prompt in the settings file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def run(args: argparse.Namespace) -> int:
    settings_path = args.settings or get_settings_path()
    settings = read_settings(settings_path)
    if args.provider:
        settings["provider"] = args.provider
    if args.place:
        settings["auto_send_mode"] = args.place
    if args.verbose:
        settings["log_level"] = "debug"
    configure_logging(settings)

    host = MemoryHost()
    document = host.open_document(args.image)
    if args.select:
        document.select_rect(*args.select, feather=args.feather)
    else:
        document.select_rect(0, 0, document.width, document.height, feather=args.feather)

    session = GenerationSession(host, settings)
    outcome = session.generate(args.prompt)
    print(f"Generated {len(outcome.items)} image(s) with {outcome.result.provider}")

    if outcome.placement is not None:
        bounds = outcome.placement.final_bounds
        print(
            f"Placed at ({bounds.left:.0f}, {bounds.top:.0f}) "
            f"size {bounds.width:.0f}x{bounds.height:.0f}"
        )

    if args.save_result:
        saved = session.save_current(lambda suggested: args.save_result)
        print(f"Saved result to {saved.target}")

    if args.output:
        document.save(args.output)
        print(f"Wrote document to {args.output}")

    if args.remember_prompt:
        write_settings(settings_path, session.settings)

    session.clear_previews()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except (AyaError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""TreeMorph - particle tree that bursts into a photo gallery."""

import argparse
import logging
import os
import sys

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(__file__))

from treemorph.app import App
from treemorph.assets.images import PHOTOS_DIR
from treemorph.config import BUILTIN_PRESETS, load_config, load_preset


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--preset", default="Default",
                        help=f"built-in ({', '.join(BUILTIN_PRESETS)}) or user preset name")
    parser.add_argument("--config", help="path to a JSON config file (overrides --preset)")
    parser.add_argument("--photos", default=PHOTOS_DIR, help="directory of ornament photos")
    parser.add_argument("--size", default="1280x720", help="window size WxH")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config) if args.config else load_preset(args.preset)
    width, height = (int(v) for v in args.size.lower().split("x"))

    app = App(config, width=width, height=height, photos_dir=args.photos)
    app.run()


if __name__ == "__main__":
    main()

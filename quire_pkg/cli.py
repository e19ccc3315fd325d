#!/usr/bin/env python3
"""
Command-line interface for Quire - static site generator.
"""

import os
import sys
import shutil
import logging
import argparse
from typing import List, Optional

from . import __version__
from .core import Compiler, setup_logging
from .errors import QuireError
from .settings import QuireSettings, Settings

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))

# (destination relative to the source directory, file shipped in the package)
STARTER_FILES = [
    ('_layouts/head.html', 'layouts/head.html'),
    ('_layouts/page.html', 'layouts/page.html'),
    ('_layouts/foot.html', 'layouts/foot.html'),
    ('css/custom.css', 'starter/custom.css'),
    ('welcome.markdown', 'starter/welcome.markdown'),
]

EXIT_OK = 0
EXIT_SKIPPED = 1
EXIT_FATAL = 2


def init_content(source_dir: str, logger: logging.Logger) -> List[str]:
    """Populate source_dir with starter layouts, content and settings.

    Existing files are left alone. Returns the relative paths created.
    """
    created = []
    for relpath, package_path in STARTER_FILES:
        dest = os.path.join(source_dir, *relpath.split('/'))
        if os.path.exists(dest):
            logger.info(f"File already exists: {relpath}")
            continue
        logger.debug(f"Creating directory {os.path.dirname(dest)} ...")
        os.makedirs(os.path.dirname(dest), exist_ok=True)
        logger.info(f"Creating {relpath} ...")
        shutil.copyfile(os.path.join(PACKAGE_DIR, *package_path.split('/')), dest)
        created.append(relpath)

    settings_loader = QuireSettings(source_dir)
    existing_config = settings_loader.find_config_file()
    if existing_config:
        logger.info(f"Configuration file already exists: {os.path.basename(existing_config)}")
    else:
        config_path = settings_loader.create_sample_config('yml')
        logger.info(f"Creating {os.path.basename(config_path)} ...")
        created.append(os.path.basename(config_path))
    return created


def read_settings(source_dir: Optional[str], settings_file: Optional[str]) -> Settings:
    """Load the explicit settings file, or the one found in source_dir (or cwd)."""
    settings_loader = QuireSettings(source_dir or os.getcwd())
    return settings_loader.load_settings(settings_file)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='quire', description='Quire - Static Site Generator')
    parser.add_argument('source', nargs='?', metavar='SRC',
                        help='Source directory (default: settings or current directory)')
    parser.add_argument('dest', nargs='?', metavar='DEST',
                        help='Output directory (default: settings or _output)')
    parser.add_argument('-s', '--settings', type=str, metavar='FILE',
                        help='Use an alternate settings file')
    parser.add_argument('-i', '--init', action='store_true',
                        help='Populate the source directory with default content')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help='Only display error messages')
    parser.add_argument('-D', '--debug', action='store_true',
                        help='Display debug information')
    parser.add_argument('--log-file', type=str, metavar='FILE',
                        help='Also write a detailed log to FILE')
    parser.add_argument('-V', '--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def run(argv: Optional[List[str]] = None) -> int:
    """Run the command line and return the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.quiet:
        level = logging.ERROR
    elif args.debug:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logger = setup_logging(level, args.log_file)

    if args.init:
        if args.settings:
            parser.error('option "--settings" can\'t be used with "--init"')
        if args.dest:
            parser.error('"--init" takes at most one directory')
        try:
            init_content(args.source or '.', logger)
        except (IOError, OSError) as e:
            logger.error(f"Could not create starter content: {e}")
            return EXIT_FATAL
        return EXIT_OK

    try:
        settings = read_settings(args.source, args.settings)
    except QuireError as e:
        logger.error(f"Error: {e}")
        return EXIT_FATAL

    # Command line arguments take precedence
    if args.source:
        settings.source_dir = args.source
    if args.dest:
        settings.output_dir = args.dest
    settings.source_dir = os.path.expanduser(settings.source_dir)
    settings.output_dir = os.path.expanduser(settings.output_dir)

    try:
        compiler = Compiler(settings, logger)
        clean = compiler.run()
    except QuireError as e:
        logger.error(f"Compilation failed: {e}")
        return EXIT_FATAL

    return EXIT_OK if clean else EXIT_SKIPPED


def main() -> None:
    """Main CLI entry point."""
    sys.exit(run())


if __name__ == '__main__':
    main()

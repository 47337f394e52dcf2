from __future__ import annotations

import argparse
import sys
from pathlib import Path

from droidmedia.application.browse_folders import list_folders
from droidmedia.application.list_media import list_media
from droidmedia.application.pull_media import preview_media, pull_many
from droidmedia.application.resolve_thumbnail import resolve_thumbnail
from droidmedia.domain import DroidMediaError, MediaFilter
from droidmedia.infrastructure.adb import AdbGateway
from droidmedia.infrastructure.fs.config_store import load_config, save_config
from droidmedia.infrastructure.fs.logger import create_logger
from droidmedia.infrastructure.fs.path_utils import ensure_cache_dir, get_app_root


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='droidmedia',
        description='Browse, preview and pull media from an Android device over adb',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m droidmedia -s emulator-5554 folders /sdcard
  python -m droidmedia -s emulator-5554 media /sdcard/DCIM/Camera --filter videos
  python -m droidmedia -s emulator-5554 thumbnail "/sdcard/DCIM/Camera/My Photo.jpg"
  python -m droidmedia -s emulator-5554 pull /sdcard/DCIM/a.jpg /sdcard/DCIM/b.mp4 --dest ~/Pictures
        """,
    )
    parser.add_argument('-s', '--serial', required=True, help='Device serial (see `adb devices`)')
    parser.add_argument('--adb', help='Path to the adb executable (overrides config)')
    parser.add_argument('--ffmpeg', help='Path to the ffmpeg executable (overrides config)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Echo log lines to stdout')

    sub = parser.add_subparsers(dest='command', required=True)

    folders = sub.add_parser('folders', help='List folders at a device path')
    folders.add_argument('path', nargs='?', help='Device path (default from config)')

    media = sub.add_parser('media', help='List media files in a device folder')
    media.add_argument('path')
    media.add_argument('--filter', default='all', choices=[f.value for f in MediaFilter])

    thumb = sub.add_parser('thumbnail', help='Resolve a thumbnail and print it as a data URL')
    thumb.add_argument('path')

    pull = sub.add_parser('pull', help='Pull one or more files')
    pull.add_argument('paths', nargs='+')
    pull.add_argument('--dest', help='Local destination folder (default: last used)')

    preview = sub.add_parser('preview', help='Pull a file into the preview cache')
    preview.add_argument('path')
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    app_root = get_app_root()
    config = load_config(app_root)
    logger = create_logger(ensure_cache_dir('logs'), args.serial, echo=args.verbose)

    gateway = AdbGateway(
        args.adb or config['adb_path'],
        command_timeout=config['command_timeout'],
        transfer_timeout=config['transfer_timeout'],
    )
    ffmpeg_path = args.ffmpeg or config['ffmpeg_path']

    try:
        if args.command == 'folders':
            path = args.path or config['default_device_path']
            for folder in list_folders(gateway, args.serial, path):
                marker = '*' if folder.is_media_folder else ' '
                print(f'{marker} {folder.path}')
        elif args.command == 'media':
            items = list_media(gateway, args.serial, args.path, MediaFilter.parse(args.filter))
            for item in items:
                date = item.date_taken.strftime('%Y-%m-%d %H:%M') if item.date_taken else '-'
                print(f'{item.media_type.value:5} {date:16} {item.size_bytes:>12} {item.path}')
        elif args.command == 'thumbnail':
            print(
                resolve_thumbnail(
                    gateway,
                    args.serial,
                    args.path,
                    ensure_cache_dir('thumbnails'),
                    ffmpeg_path=ffmpeg_path,
                    thumbnail_size=config['thumbnail_size'],
                    log=logger,
                )
            )
        elif args.command == 'pull':
            dest = Path(args.dest or config['last_destination'] or Path.home() / 'Downloads').expanduser()
            results = pull_many(gateway, args.serial, args.paths, dest, log=logger)
            for result in results:
                status = 'OK ' if result.success else 'ERR'
                print(f'{status} {result.source_path} {result.dest_path or result.error}')
            config['last_destination'] = str(dest)
            save_config(app_root, config)
            if not all(r.success for r in results):
                return 1
        elif args.command == 'preview':
            print(preview_media(gateway, args.serial, args.path, ensure_cache_dir('previews')))
    except DroidMediaError as exc:
        logger.write(f'ERROR: {exc}')
        print(f'ERROR: {exc}', file=sys.stderr)
        print(exc.user_guidance, file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())

#!/usr/bin/env python3
"""
Index songs into the fingerprint database.

Usage:
    python scripts/index_songs.py --folder ~/music --pattern "*.wav"
    python scripts/index_songs.py --file song.flac --name "Artist - Title"
    python scripts/index_songs.py --list
"""

import argparse
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from songprint import SongRecognizer
from songprint.config import DB_PATH
from songprint.errors import AudioDecodeError, StoreUnavailableError
from songprint.log import setup_logging

log = setup_logging()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Add songs to the fingerprint database')
    parser.add_argument('--db', type=str, default=DB_PATH, help='Path to the SQLite database')
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--folder', '-f', type=str, help='Folder of audio files to index')
    group.add_argument('--file', type=str, help='Single audio file to index')
    group.add_argument('--list', '-l', action='store_true', help='List indexed songs')
    parser.add_argument('--pattern', '-p', type=str, default='*.wav')
    parser.add_argument('--name', '-n', type=str, default=None,
                        help='Song name for --file (default: file name)')
    args = parser.parse_args(argv)

    try:
        with SongRecognizer(args.db) as recognizer:
            if args.list:
                for song_id, name in recognizer.list_songs():
                    print(f"{song_id:>5}  {name}")
                return 0

            recognizer.load(progress=True)
            log.info(f"Database: {recognizer.num_indexed_songs} songs indexed")

            if args.file:
                path = Path(args.file).expanduser()
                song_id = recognizer.index_song(path, name=args.name)
                if song_id is None:
                    log.warning(f"'{args.name or path.stem}' is already indexed")
                return 0

            folder = Path(args.folder).expanduser()
            if not folder.is_dir():
                log.error(f"Folder not found: {folder}")
                return 1
            count = recognizer.index_folder(folder, args.pattern)
            log.info(f"✓ Added {count} songs ({recognizer.num_indexed_songs} total)")
    except (FileNotFoundError, AudioDecodeError) as e:
        log.error(str(e))
        return 1
    except StoreUnavailableError as e:
        log.error(f"Database error: {e}")
        return 2
    return 0


if __name__ == '__main__':
    sys.exit(main())

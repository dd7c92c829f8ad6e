#!/usr/bin/env python3
"""
Identify a song from an audio file.

Usage:
    python scripts/recognize.py --query clip.wav
    python scripts/recognize.py --query song.wav --clip-length 10 --snr 5 --plot offsets.png
"""

import argparse
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from songprint import SongRecognizer
from songprint.audio import cut_audio, inject_noise, load_pcm
from songprint.config import CHUNK_SIZE, DB_PATH
from songprint.errors import AudioDecodeError, StoreUnavailableError
from songprint.hashing import extract_fingerprints
from songprint.log import setup_logging

log = setup_logging()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='songprint - song recognition')
    parser.add_argument('--query', '-q', type=str, required=True,
                        help='Path to query audio file')
    parser.add_argument('--db', type=str, default=DB_PATH,
                        help='Path to the SQLite database')
    parser.add_argument('--clip-length', type=float, default=None,
                        help='Clip length in seconds (for testing with shorter clips)')
    parser.add_argument('--snr', type=float, default=None,
                        help='SNR in dB for noise injection (for testing robustness)')
    parser.add_argument('--plot', type=str, default=None,
                        help='Save the offset histogram of the best song to this file')
    parser.add_argument('--debug', action='store_true', help='Log step timings')
    args = parser.parse_args(argv)

    if args.debug:
        setup_logging(level="DEBUG")

    query_path = Path(args.query)
    if not query_path.exists():
        log.error(f"Query file not found: {query_path}")
        return 1

    try:
        with SongRecognizer(args.db) as recognizer:
            recognizer.load(progress=True)
            print(f"Recognizing: {query_path.name}")
            print(f"Database: {recognizer.num_indexed_songs} songs indexed")

            samples = load_pcm(query_path)
            if args.clip_length is not None:
                samples = cut_audio(samples, args.clip_length, align=CHUNK_SIZE)
            if args.snr is not None:
                samples = inject_noise(samples, args.snr)

            result = recognizer.identify_samples(samples, debug=args.debug)

            if result.matched:
                print(f"\n✓ Match found: {result.song_name}")
                print(f"  Matching points: {result.confidence}")
                print(f"  Offset: {result.offset} frames ({result.offset_seconds:.2f}s)")
            else:
                print("\n✗ No match found")

            if args.plot and result.matched:
                from songprint.plotting import plot_offset_histogram

                votes = recognizer.matcher.vote(enumerate(extract_fingerprints(samples)))
                plot_offset_histogram(votes, result.song_id, Path(args.plot), title=result.song_name)
                print(f"  Offset histogram saved to {args.plot}")
    except AudioDecodeError as e:
        log.error(str(e))
        return 1
    except StoreUnavailableError as e:
        log.error(f"Database error: {e}")
        return 2
    return 0


if __name__ == '__main__':
    sys.exit(main())

from pathlib import Path
from typing import Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from .matcher import Votes


def plot_offset_histogram(votes: Votes, song_id: int, output_path: Path,
                          title: Optional[str] = None) -> None:
    """
    Bar plot of vote count per offset for one song.
    A true match shows a single tall bar; a false one is flat noise.
    """
    offset_counts = votes.get(song_id, {})
    offsets = sorted(offset_counts)
    counts = [offset_counts[o] for o in offsets]

    plt.figure(figsize=(10, 4))
    plt.bar(offsets, counts, width=1.0, color='blue')
    plt.xlabel("Offset (frames)")
    plt.ylabel("Matching hashes")
    plt.title(title or f"Offset histogram for song {song_id}")
    plt.grid(True)
    plt.savefig(output_path)
    plt.close()

# ---------- CONFIG ---------- #

DB_PATH = "fingerprints.db"

# PCM layout handed to the extractor: signed 8-bit, mono
SAMPLE_RATE = 44100

# samples per frame; frames do not overlap and the remainder is dropped
CHUNK_SIZE = 4096

# Band boundaries (in FFT bin indices). One peak per interval -> 4 peaks per frame.
# 40..300 covers ~430 Hz to ~3.2 kHz at 44.1 kHz / 4096 points
RANGE = (40, 80, 120, 180, 300)

FUZ_FACTOR = 2  # absorb small variations in frequency: 43 -> 42, 81 -> 80, etc.

# minimum number of hashes agreeing on the same offset to report a match
MATCH_THRESHOLD = 2

# frames transformed per numpy call (bounds memory for long songs)
FRAME_BATCH = 256

INSERT_BATCH_SIZE = 1000
LOAD_BATCH_SIZE = 10000

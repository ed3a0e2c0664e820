"""
Centralized configuration constants for the dish cutout pipeline.

Ground rules:
- uint8 rasters at the boundaries, float32 inside the stages
- every stage returns a fresh buffer of the same (H, W)
"""

# Rec. 709 luma weights used everywhere a pixel is reduced to brightness.
LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)

# Binarizer / dilator
BINARIZE_THRESHOLD = 128
DILATE_THRESHOLD = 16

# Hole filler
CLOSE_RADIUS = 2

# Shrinker
SHRINK_THRESHOLD = 240
SHRINK_FRACTION = 0.005

# Softener
EXPAND_GAIN = 1.25

# Cutout alpha ramp
RAMP_LOW = 5
RAMP_HIGH = 200

# Aligner
COARSE_TOP_EDGE_PCT = 0.90
FINE_RADIUS_PX = 8
ALIGN_LAMBDA = 0.002
EDGE_BAND_PX = 40
COARSE_CLAMP_PX = 12
EDGE_EPS = 1e-6
NO_SAMPLES_SCORE = -1e9

# Defaults used by the production caller.
DEFAULT_DILATE_PX = 2
DEFAULT_EXPAND_PX = 2
DEFAULT_FEATHER_PX = 2

# Allowed AI edit sizes (w, h). Square-ish tolerance applies to w/h.
EDIT_SIZE_SQUARE = (1024, 1024)
EDIT_SIZE_PORTRAIT = (1024, 1536)
EDIT_SIZE_LANDSCAPE = (1536, 1024)
SQUARE_ASPECT_MIN = 0.92
SQUARE_ASPECT_MAX = 1.08

# External segmentation collaborator.
MASK_MODEL = "gpt-image-1.5"
MASK_QUALITY = "low"
MAX_MASK_RETRIES = 1

# Versioned prompt (keep changes explicit + centralized).
MASK_PROMPT = """Return a BLACK-AND-WHITE segmentation mask PNG.

WHITE = ONLY the dish itself (bun, patty, cheese, fillings).
BLACK = everything else (plate, tray, table, background, shadows).

Strict rules:
- Do NOT shift, rotate, scale, crop, or redraw.
- Do NOT change framing. Output mask in the exact same position as the input pixels.
- Return ONLY the mask.

Rules:
- PURE white (#FFFFFF) and PURE black (#000000)
- No gray, no feather, no blur
- If unsure, include a bit MORE of the dish, never less
- The output MUST be perfectly pixel-aligned with the input.
"""

# Local maxima / candidate scoring
DEFAULT_WINDOW_SIZE = 3
DEFAULT_THRESH_COEF = 1.3

# Classification: quantile of candidate scores used as the acceptance cutoff
DEFAULT_PERCENTILE = 0.99

# Enhancement filters
DEFAULT_BOX_SIZE = 3

# Gaussian-like 3x3 smoothing kernel (sums to ~1)
SMOOTHING_KERNEL = (
    (0.0585, 0.0965, 0.0585),
    (0.0965, 0.1592, 0.0965),
    (0.0585, 0.0965, 0.0585),
)

# 4-neighbour Laplacian (positive centre, so bright blobs get a positive boost)
LAPLACIAN_KERNEL = (
    (0.0, -1.0, 0.0),
    (-1.0, 4.0, -1.0),
    (0.0, -1.0, 0.0),
)

# Concurrency
DEFAULT_MAX_CONCURRENCY = 4

# Debug artifacts
OVERLAY_MARKER_RADIUS = 3
OVERLAY_UPSCALE_MAX = 8
OVERLAY_TARGET_SIZE = 800
RESPONSE_PLOT_DPI = 150

# Export
CSV_FIELDS = (
    "x",
    "y",
    "intensity",
    "hessian_response",
    "local_mean_intensity",
    "score",
    "significance",
    "is_significant",
)

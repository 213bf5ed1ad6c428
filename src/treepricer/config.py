"""Engine-wide defaults.

Every value here can be overridden per call through keyword arguments.
"""

# Row sums of a transition-probability matrix must be within this of one.
PROBABILITY_TOLERANCE = 1e-10

# Representative averages carried per node by the Asian variant.
DEFAULT_AVERAGING_POINTS = 60

# ``None`` lets ThreadPoolExecutor pick its own worker count.
DEFAULT_MAX_WORKERS = None

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

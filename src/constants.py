# Rq ≈ 1.25 Ra for a Gaussian height distribution
RA_TO_RQ = 1.25

# Practical parameter ranges (µm)
RA_MIN = 1e-6
RA_MAX = 3.2
WAVELENGTH_MIN = 0.01
WAVELENGTH_MAX = 2.0

# Divisor guards
WAVELENGTH_FLOOR = 1e-4     # µm, g-parameter
RA_NM_FLOOR = 1e-5          # nm, Rayleigh-Rice lobe width
BECKMANN_SLOPE_FLOOR = 0.005

# Auto model classification thresholds on g
G_SMOOTH_LIMIT = 0.01
G_ROUGH_LIMIT = 15.0

# Angular sweep defaults (deg)
ANGLE_START = -90.0
ANGLE_STOP = 90.0
ANGLE_DECIMALS = 4

# Profile synthesis
PROFILE_DAMPING = 0.15
PROFILE_NOISE_SPAN = 4.0
FIELD_NOISE_SPAN = 2.0

ENERGY_FRACTIONS = (0.50, 0.90, 0.99)
